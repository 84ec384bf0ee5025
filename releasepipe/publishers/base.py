"""Shared pieces of the remote release clients.

Publishers handle the remote side of a release:
- GitHub releases (with asset uploads)
- GitLab releases
- npm registry publishing
"""

import json
import logging
import os
import re
import urllib.error
import urllib.request
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar
from urllib.parse import urlparse

from releasepipe.exceptions import RemoteReleaseError, TokenError

if TYPE_CHECKING:
    from releasepipe.changelog import Changelog
    from releasepipe.config.models import GitHubOptions, GitLabOptions, GitOptions
    from releasepipe.log import Logger
    from releasepipe.utils.shell import Shell

logger = logging.getLogger(__name__)

USER_AGENT = "releasepipe"

# user@host:path (scp-like ssh remotes)
SCP_PATTERN = re.compile(r"^(?:[^@/\s]+@)?(?P<host>[^:/\s]+):(?P<path>[^/\s].*)$")


class PublishStatus(Enum):
    """Status of a remote release or publish operation."""

    PENDING = "pending"
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RepoInfo:
    """Coordinates of a repository derived from its remote url."""

    host: str
    owner: str | None
    project: str
    repository: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_repo(url: str | None) -> RepoInfo | None:
    """Split a remote url into host, owner and project.

    Local paths (bare repositories on disk) have no owner and the
    host "localhost".

    Examples:
        >>> parse_repo("git@github.com:webpro/release-it.git").repository
        'webpro/release-it'
        >>> parse_repo("https://gitlab.com/group/sub/app").owner
        'group/sub'
        >>> parse_repo("/tmp/remotes/app.git").repository
        'app'
    """
    if not url:
        return None
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme and parsed.scheme != "file" and parsed.hostname:
        host, path = parsed.hostname, parsed.path
    else:
        match = SCP_PATTERN.match(url) if not parsed.scheme else None
        if match:
            host, path = match.group("host"), match.group("path")
        else:
            local = parsed.path if parsed.scheme == "file" else url
            project = Path(local.rstrip("/")).name.removesuffix(".git")
            return RepoInfo(host="localhost", owner=None, project=project, repository=project)

    parts = [part for part in path.strip("/").removesuffix(".git").split("/") if part]
    if not parts:
        return None
    project = parts[-1]
    owner = "/".join(parts[:-1]) or None
    repository = f"{owner}/{project}" if owner else project
    return RepoInfo(host=host, owner=owner, project=project, repository=repository)


class ReleaseClient:
    """Base for the GitHub and GitLab release clients.

    Each client owns its released flag and status; nothing else writes
    them. remote_url is assigned by the pipeline after git validation.
    """

    provider: ClassVar[str] = ""

    def __init__(
        self,
        options: "GitHubOptions | GitLabOptions",
        git_options: "GitOptions",
        shell: "Shell",
        log: "Logger",
        changelog: "Changelog",
    ) -> None:
        self.options = options
        self.git_options = git_options
        self.shell = shell
        self.log = log
        self.changelog = changelog
        self.remote_url: str | None = None
        self.is_released = False
        self.status = PublishStatus.PENDING
        self.release_url: str | None = None

    @property
    def is_dry_run(self) -> bool:
        return self.shell.config.is_dry_run

    @property
    def token(self) -> str | None:
        return os.environ.get(self.options.token_ref)

    @property
    def repo(self) -> RepoInfo | None:
        return parse_repo(self.remote_url)

    @property
    def tag_name(self) -> str:
        return self.shell.config.format(self.git_options.tag_name)

    @property
    def release_name(self) -> str:
        return self.shell.config.format(self.options.release_name)

    def validate(self) -> None:
        """Raises TokenError when releasing is enabled without a token."""
        if self.options.release and not self.token:
            raise TokenError(self.provider, self.options.token_ref)

    def get_notes(self) -> str:
        """Output of the release_notes command, empty when none is set."""
        if not self.options.release_notes:
            return ""
        return self.shell.run(self.shell.config.format(self.options.release_notes), read_only=True)

    def get_body(self, changelog: str | None) -> str:
        if self.options.release_notes:
            return self.get_notes()
        return changelog or ""

    def get_release_url(self) -> str | None:
        return self.release_url

    def _request(
        self,
        method: str,
        url: str,
        payload: dict[str, Any] | None = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send an API request and decode the JSON response.

        Raises:
            RemoteReleaseError: On HTTP or network failure
        """
        all_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        all_headers.update(headers or {})
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            all_headers["Content-Type"] = "application/json"

        req = urllib.request.Request(url, data=data, headers=all_headers, method=method)
        logger.debug("%s %s", method, url)
        try:
            with urllib.request.urlopen(req, timeout=self.options.timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise RemoteReleaseError(
                f"{self.provider} API request failed ({e.code} {e.reason})",
                details=e.read().decode("utf-8", errors="replace"),
                fix_hint=f"Check that {self.options.token_ref} has access to the repository",
            ) from e
        except urllib.error.URLError as e:
            raise RemoteReleaseError(
                f"Could not reach the {self.provider} API",
                details=str(e.reason),
                fix_hint="Check network connectivity",
            ) from e

        if not body:
            return {}
        try:
            result: dict[str, Any] = json.loads(body)
        except json.JSONDecodeError as e:
            raise RemoteReleaseError(
                f"Invalid response from the {self.provider} API", details=body[:500]
            ) from e
        return result
