"""Git state query operations.

This module provides read-only git operations for inspecting repository state.
Queries run even in dry-run mode; they use releasepipe.utils.shell.run()
directly and raise GitError when git itself fails unexpectedly.
"""

import re
from pathlib import Path

from releasepipe.exceptions import GitError
from releasepipe.utils.shell import ShellError, run

URL_PATTERN = re.compile(r"^(?:[a-z][a-z0-9+.-]*://|[^/@\s]+@[^:\s]+:|\.{0,2}/)")


def is_inside_work_tree(cwd: Path | None = None) -> bool:
    result = run(["git", "rev-parse", "--is-inside-work-tree"], cwd=cwd, check=False)
    return result.returncode == 0 and result.stdout.strip() == "true"


def get_toplevel(cwd: Path | None = None) -> Path | None:
    """Absolute path of the repository root, or None outside a repository."""
    result = run(["git", "rev-parse", "--show-toplevel"], cwd=cwd, check=False)
    if result.returncode != 0:
        return None
    return Path(result.stdout.strip())


def get_remote_url(remote: str = "origin", cwd: Path | None = None) -> str | None:
    """Get the URL of a git remote.

    A value that already looks like a url (https://, git@host:, ./path) is
    returned as-is, so push_repo may name either a remote or a url.

    Returns:
        Remote URL, or None when the remote does not exist
    """
    if URL_PATTERN.match(remote):
        return remote
    result = run(["git", "config", "--get", f"remote.{remote}.url"], cwd=cwd, check=False)
    url = result.stdout.strip()
    return url or None


def is_clean(cwd: Path | None = None) -> bool:
    """Check if tracked files have no uncommitted changes.

    Untracked files are ignored.

    Raises:
        GitError: If git status command fails
    """
    try:
        result = run(
            ["git", "status", "--porcelain", "--untracked-files=no"], cwd=cwd, check=True
        )
        return not result.stdout.strip()
    except ShellError as e:
        raise GitError(
            "Failed to check git working directory status",
            details=str(e),
            fix_hint="Ensure you are in a git repository and git is installed",
        ) from e


def has_upstream(cwd: Path | None = None) -> bool:
    result = run(
        ["git", "rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"],
        cwd=cwd,
        check=False,
    )
    return result.returncode == 0


def get_current_branch(cwd: Path | None = None) -> str:
    """Get the name of the current git branch.

    Raises:
        GitError: If unable to determine current branch
    """
    try:
        result = run(["git", "branch", "--show-current"], cwd=cwd, check=True)
        branch = result.stdout.strip()
        if not branch:
            # Fallback for detached HEAD state
            result = run(
                ["git", "rev-parse", "--abbrev-ref", "HEAD"], cwd=cwd, check=True
            )
            branch = result.stdout.strip()
        return branch
    except ShellError as e:
        raise GitError(
            "Failed to get current branch name",
            details=str(e),
            fix_hint="Ensure you are in a git repository with at least one commit",
        ) from e


def get_latest_tag(cwd: Path | None = None) -> str | None:
    """Most recent tag reachable from HEAD, or None if there is none."""
    result = run(["git", "describe", "--tags", "--abbrev=0"], cwd=cwd, check=False)
    if result.returncode == 0:
        return result.stdout.strip() or None
    return None


def get_status(cwd: Path | None = None) -> str:
    """Short status of tracked files (the pending changeset)."""
    result = run(
        ["git", "status", "--short", "--untracked-files=no"], cwd=cwd, check=False
    )
    return result.stdout.rstrip()


def get_commits_since(tag: str | None, cwd: Path | None = None) -> list[dict[str, str]]:
    """Get all commits since a given tag (all commits when tag is None).

    Returns:
        List of commit dictionaries with keys sha, short_sha, subject, body

    Raises:
        GitError: If the tag does not exist or git log fails
    """
    # %x1f / %x1e: unit and record separators, safe inside commit messages
    format_str = "%H%x1f%h%x1f%s%x1f%b%x1e"
    cmd = ["git", "log", f"--pretty=format:{format_str}"]
    if tag:
        cmd.append(f"{tag}..HEAD")
    try:
        result = run(cmd, cwd=cwd, check=True, strip_output=False)
    except ShellError as e:
        raise GitError(
            f"Failed to get commits since '{tag or 'the first commit'}'",
            details=str(e),
            fix_hint="Run 'git tag' to list tags.",
        ) from e

    commits = []
    for record in result.stdout.split("\x1e"):
        parts = record.strip("\n").split("\x1f")
        if len(parts) == 4:
            commits.append(
                {
                    "sha": parts[0],
                    "short_sha": parts[1],
                    "subject": parts[2],
                    "body": parts[3].strip(),
                }
            )
    return commits
