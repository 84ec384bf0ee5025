"""Git client for the distribution repository."""

from pathlib import Path
from typing import TYPE_CHECKING, Any

from releasepipe.config.models import DistOptions, GitOptions
from releasepipe.exceptions import DistRepoStageDirError
from releasepipe.git import operations, queries
from releasepipe.git.client import Git

if TYPE_CHECKING:
    from releasepipe.log import Logger
    from releasepipe.utils.shell import Shell

# Files copied into the stage dir are new to the distribution repository
DIST_GIT_DEFAULTS: dict[str, Any] = {"add_untracked_files": True}


def split_repo(repo: str) -> tuple[str, str | None]:
    """Split a `url[#branch]` reference.

    Examples:
        >>> split_repo("git@github.com:org/site.git#gh-pages")
        ('git@github.com:org/site.git', 'gh-pages')
        >>> split_repo("../dist-repo")
        ('../dist-repo', None)
    """
    url, _, branch = repo.partition("#")
    return url, branch or None


def is_subdirectory(path: str | Path, root: Path | None = None) -> bool:
    """True if path resolves to a directory strictly below root (cwd)."""
    root = (root or Path.cwd()).resolve()
    resolved = (root / path).resolve()
    return resolved != root and resolved.is_relative_to(root)


class GitDist(Git):
    """Git client working inside the staged distribution clone.

    Options are the primary git options with the `dist.git` overrides
    applied on top.
    """

    def __init__(
        self,
        options: GitOptions,
        dist: DistOptions,
        shell: "Shell",
        log: "Logger",
    ) -> None:
        merged = GitOptions.model_validate(
            {**options.model_dump(), **DIST_GIT_DEFAULTS, **dist.git}
        )
        super().__init__(merged, shell, log)
        self.dist = dist

    def validate(self) -> None:
        """Raises DistRepoStageDirError if stage_dir escapes the working directory."""
        if self.dist.repo and not is_subdirectory(self.dist.stage_dir):
            raise DistRepoStageDirError(self.dist.stage_dir)

    def clone(self) -> None:
        url, branch = split_repo(self.dist.repo or "")
        operations.clone(self.shell, url, self.dist.stage_dir, branch)

    def init(self) -> None:
        """Read remote and tag state; call from inside the stage dir."""
        self.remote_url = queries.get_remote_url(self.options.push_repo)
        self.latest_tag = queries.get_latest_tag()
        self.is_root_dir = True

    def handle_tag_options(self, primary: Git) -> None:
        """Mirror the primary repository's tag decision.

        When both releases push to the same remote and the primary already
        created the tag, tagging again would collide.
        """
        if "tag" in self.dist.git:
            return
        tag = primary.options.tag
        if tag and primary.remote_url == self.remote_url:
            tag = False
        self.options = self.options.model_copy(update={"tag": tag})
