"""Git state modification operations.

Every function takes the run's Shell, so mutating commands are echoed in
verbose mode and skipped in dry-run mode. Failures surface as ShellError;
callers translate them where a friendlier error exists.
"""

import shlex
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from releasepipe.utils.shell import Shell


def _extra(args: str) -> list[str]:
    return shlex.split(args) if args else []


def add(shell: "Shell", paths: list[str], *flags: str) -> str:
    return shell.run(["git", "add", *flags, *paths])


def commit(shell: "Shell", message: str, args: str = "") -> str:
    """Create a commit of the staged changes."""
    return shell.run(["git", "commit", f"--message={message}", *_extra(args)])


def tag(shell: "Shell", name: str, annotation: str, args: str = "") -> str:
    """Create an annotated tag on HEAD."""
    return shell.run(
        ["git", "tag", "--annotate", f"--message={annotation}", *_extra(args), name]
    )


def push(
    shell: "Shell",
    repo: str,
    args: str = "",
    set_upstream_branch: str | None = None,
) -> str:
    """Push to a remote, optionally setting the upstream of a branch."""
    cmd = ["git", "push", *_extra(args)]
    if set_upstream_branch:
        cmd += ["--set-upstream", repo, set_upstream_branch]
    else:
        cmd.append(repo)
    return shell.run(cmd)


def checkout_files(shell: "Shell", paths: list[str], ref: str = "HEAD") -> str:
    """Restore files from a ref, discarding local modifications."""
    return shell.run(["git", "checkout", ref, "--", *paths])


def clone(shell: "Shell", url: str, target: str, branch: str | None = None) -> str:
    """Clone a repository into target.

    Cloning only creates the scratch working copy of a distribution
    release, so it also runs in dry-run mode.
    """
    cmd = ["git", "clone", url]
    if branch:
        cmd += ["--branch", branch]
    cmd.append(target)
    return shell.run(cmd, read_only=True)
