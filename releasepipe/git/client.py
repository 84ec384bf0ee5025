"""Git collaborator of the release pipeline."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from releasepipe.config.models import GitOptions
from releasepipe.exceptions import (
    GitCleanWorkingDirError,
    GitCommitError,
    GitRemoteUrlError,
    GitRepoError,
    GitUpstreamError,
)
from releasepipe.git import operations, queries
from releasepipe.utils.shell import ShellError

if TYPE_CHECKING:
    from releasepipe.log import Logger
    from releasepipe.utils.shell import Shell

logger = logging.getLogger(__name__)


class Git:
    """Validates the working copy and performs commit, tag and push.

    latest_tag, is_root_dir and remote_url are known after validate().
    """

    def __init__(self, options: GitOptions, shell: "Shell", log: "Logger") -> None:
        self.options = options
        self.shell = shell
        self.log = log
        self.remote_url: str | None = None
        self.latest_tag: str | None = None
        self.is_root_dir = False

    def validate(self) -> None:
        """Check repository, remote, cleanliness and upstream, in that order.

        Raises:
            GitRepoError, GitRemoteUrlError, GitCleanWorkingDirError,
            GitUpstreamError
        """
        if not queries.is_inside_work_tree():
            raise GitRepoError()
        self.remote_url = queries.get_remote_url(self.options.push_repo)
        if not self.remote_url:
            raise GitRemoteUrlError()
        if self.options.require_clean_working_dir and not queries.is_clean():
            raise GitCleanWorkingDirError()
        if self.options.require_upstream and not queries.has_upstream():
            raise GitUpstreamError()
        self.latest_tag = queries.get_latest_tag()
        toplevel = queries.get_toplevel()
        self.is_root_dir = toplevel is not None and toplevel.resolve() == Path.cwd().resolve()
        logger.debug(
            "git: remote=%s latest_tag=%s root=%s",
            self.remote_url,
            self.latest_tag,
            self.is_root_dir,
        )

    def status(self) -> str:
        return queries.get_status()

    def stage(self, files: list[str] | None) -> None:
        for file in files or []:
            try:
                operations.add(self.shell, [file])
            except ShellError:
                self.log.warn(f"Could not stage {file}")

    def stage_dir(self, base_dir: str = ".") -> None:
        flag = "--all" if self.options.add_untracked_files else "--update"
        operations.add(self.shell, [base_dir], flag)

    def reset(self, files: list[str] | None) -> None:
        """Discard local changes to files (used to revert a version bump)."""
        if files:
            operations.checkout_files(self.shell, files)

    def commit(self) -> bool:
        message = self.shell.config.format(self.options.commit_message)
        try:
            operations.commit(self.shell, message, self.options.commit_args)
        except ShellError as e:
            if "nothing to commit" in f"{e.stdout}\n{e.stderr}":
                self.log.warn("No changes to commit. The latest commit will be tagged.")
                return True
            raise GitCommitError(
                "Could not create the release commit",
                details=e.stderr or e.stdout or str(e),
            ) from e
        return True

    @property
    def tag_name(self) -> str:
        return self.shell.config.format(self.options.tag_name)

    def tag(self) -> bool:
        annotation = self.shell.config.format(self.options.tag_annotation)
        operations.tag(self.shell, self.tag_name, annotation, self.options.tag_args)
        return True

    def push(self) -> bool:
        branch = None
        if not queries.has_upstream():
            branch = queries.get_current_branch()
        operations.push(
            self.shell,
            self.options.push_repo,
            self.options.push_args,
            set_upstream_branch=branch,
        )
        return True
