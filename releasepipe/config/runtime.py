"""Run-scoped configuration: resolved options plus values computed mid-run."""

import os
import sys
from collections.abc import Mapping
from typing import Any

from releasepipe.config.models import ReleaseOptions
from releasepipe.utils.shell import format_template

RUNTIME_KEYS = (
    "name",
    "latest_version",
    "version",
    "is_pre_release",
    "pre_release_id",
    "changelog",
    "repo",
)


class Config:
    """Resolved options of one run and the flags derived from them.

    The options themselves are frozen. The pipeline records what it learns
    along the way (versions, changelog, repository coordinates) with
    set_runtime_options, and Config.format makes those values available to
    hook scripts and templates.
    """

    def __init__(
        self,
        options: ReleaseOptions,
        environ: Mapping[str, str] | None = None,
        is_tty: bool | None = None,
    ) -> None:
        environ = os.environ if environ is None else environ
        self.is_ci = bool(environ.get("CI")) or options.ci
        if is_tty is None:
            is_tty = sys.stdin.isatty()
        self.is_interactive = not self.is_ci and is_tty

        if not self.is_interactive and options.increment is None:
            options = options.model_copy(update={"increment": "patch"})
        self.options = options
        self._runtime: dict[str, Any] = {}

    @property
    def is_dry_run(self) -> bool:
        return self.options.dry_run

    @property
    def is_verbose(self) -> bool:
        return self.options.verbose

    @property
    def is_debug(self) -> bool:
        return self.options.debug

    @property
    def is_collect_metrics(self) -> bool:
        return not self.options.disable_metrics

    def set_runtime_options(self, **values: Any) -> None:
        unknown = set(values) - set(RUNTIME_KEYS)
        if unknown:
            raise KeyError(f"Unknown runtime option(s): {', '.join(sorted(unknown))}")
        self._runtime.update(values)

    @property
    def runtime_options(self) -> dict[str, Any]:
        return dict(self._runtime)

    def get_context(self) -> dict[str, Any]:
        """Placeholder values for ${...} templates."""
        repo = self._runtime.get("repo") or {}
        context: dict[str, Any] = {
            "name": self._runtime.get("name") or self.options.name,
            "version": self._runtime.get("version"),
            "latestVersion": self._runtime.get("latest_version"),
            "changelog": self._runtime.get("changelog"),
            "preReleaseId": self._runtime.get("pre_release_id"),
            "isPreRelease": str(bool(self._runtime.get("is_pre_release"))).lower(),
        }
        for key in ("host", "owner", "project", "repository"):
            context[f"repo.{key}"] = repo.get(key)
        return context

    def format(self, template: str) -> str:
        return format_template(template, self.get_context())
