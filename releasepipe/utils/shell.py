"""Safe subprocess execution utilities.

Provides shell command execution with:
- ANSI escape code stripping (prevents contamination in version strings)
- Proper error handling and reporting
- Timeout support
- Dry-run aware execution for mutating commands (Shell)
- ${placeholder} templating for lifecycle hook scripts
"""

import os
import re
import shlex
import shutil
import subprocess
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from string import Template
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from releasepipe.config.runtime import Config
    from releasepipe.log import Logger


class ShellError(Exception):
    """Exception raised when a shell command fails.

    Attributes:
        cmd: The command that failed
        returncode: Exit code of the failed command
        stdout: Standard output (ANSI stripped)
        stderr: Standard error (ANSI stripped)
    """

    def __init__(
        self,
        cmd: str,
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Command failed with exit code {returncode}: {cmd}")

    def __str__(self) -> str:
        parts = [f"Command failed: {self.cmd}"]
        parts.append(f"Exit code: {self.returncode}")
        if self.stderr:
            parts.append(f"Stderr: {self.stderr}")
        if self.stdout:
            parts.append(f"Stdout: {self.stdout}")
        return "\n".join(parts)


# Regex pattern for ANSI escape sequences
# Matches: ESC[...m, ESC[...;...m, and other control sequences
ANSI_PATTERN = re.compile(
    r"\x1b\[[0-9;]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\"
)

# Additional pattern for control characters that might slip through
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences and control characters from text.

    Args:
        text: Input text potentially containing ANSI codes

    Returns:
        Clean text with all ANSI sequences removed
    """
    if not text:
        return ""
    result = ANSI_PATTERN.sub("", text)
    result = CONTROL_CHARS_PATTERN.sub("", result)
    return result


def run(
    cmd: str | list[str],
    cwd: Path | None = None,
    capture: bool = True,
    check: bool = True,
    timeout: float | None = 300,
    env: dict[str, str] | None = None,
    strip_output: bool = True,
    use_shell: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Execute a command.

    String commands are split with shlex and run without a shell, unless
    use_shell is set (lifecycle hooks are shell snippets and need one).

    Args:
        cmd: Command to execute (string or list of arguments)
        cwd: Working directory for the command
        capture: Whether to capture stdout/stderr
        check: Whether to raise ShellError on non-zero exit
        timeout: Maximum execution time in seconds
        env: Additional environment variables
        strip_output: Whether to strip ANSI codes from output
        use_shell: Run a string command through the system shell

    Returns:
        CompletedProcess with stdout/stderr (ANSI stripped if requested)

    Raises:
        ShellError: If command fails and check=True
        subprocess.TimeoutExpired: If command exceeds timeout
    """
    if use_shell:
        args: str | list[str] = cmd if isinstance(cmd, str) else shlex.join(cmd)
        display = args
    else:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        display = " ".join(args)

    merged_env = {**os.environ}
    if env:
        merged_env.update(env)

    result = subprocess.run(
        args,
        cwd=cwd,
        capture_output=capture,
        text=True,
        timeout=timeout,
        env=merged_env,
        shell=use_shell,
    )

    if capture and strip_output:
        result.stdout = strip_ansi(result.stdout) if result.stdout else ""
        result.stderr = strip_ansi(result.stderr) if result.stderr else ""

    if check and result.returncode != 0:
        raise ShellError(
            cmd=display,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    return result


class _DottedTemplate(Template):
    """string.Template accepting dotted names such as ${repo.owner}."""

    idpattern = r"(?a:[_a-z][_a-z0-9]*(?:\.[_a-z][_a-z0-9]*)*)"


def format_template(template: str, context: Mapping[str, Any]) -> str:
    """Substitute ${name} placeholders from context.

    Unknown placeholders are left untouched, None values render empty.

    Examples:
        >>> format_template("Release ${version}", {"version": "1.0.1"})
        'Release 1.0.1'
        >>> format_template("${repo.owner}/${repo.project}", {"repo.owner": "a", "repo.project": "b"})
        'a/b'
    """
    if not template:
        return ""
    values = {key: "" if value is None else str(value) for key, value in context.items()}
    return _DottedTemplate(template).safe_substitute(values)


class Shell:
    """Command runner shared by every collaborator of a release run.

    Mutating commands are skipped in dry-run mode; read-only commands always
    execute so the run can still report what it would do.
    """

    def __init__(self, config: "Config", log: "Logger") -> None:
        self.config = config
        self.log = log

    def run(
        self,
        command: str | list[str],
        read_only: bool = False,
        timeout: float | None = None,
    ) -> str:
        """Run a command and return its stripped stdout.

        String commands go through the system shell so hook scripts can use
        redirection and pipes; list commands are executed directly.

        Raises:
            ShellError: If the command exits with a non-zero status
        """
        display = command if isinstance(command, str) else shlex.join(command)
        if self.config.is_dry_run and not read_only:
            self.log.exec(display, executed=False)
            return ""

        self.log.exec(display)
        result = run(
            command,
            timeout=timeout,
            use_shell=isinstance(command, str),
        )
        return result.stdout.strip()

    def run_template_command(self, template: str) -> str:
        """Format a hook script with the run context and execute it."""
        return self.run(self.config.format(template))

    @contextmanager
    def pushd(self, path: str | Path) -> Iterator[Path]:
        """Temporarily change the process working directory.

        The previous directory is restored on every exit path.
        """
        previous = Path.cwd()
        target = Path(path)
        self.log.exec(f"pushd {target}")
        os.chdir(target)
        try:
            yield target.resolve()
        finally:
            os.chdir(previous)
            self.log.exec("popd")

    def copy(
        self,
        patterns: list[str],
        target: str | Path,
        cwd: str | Path = ".",
    ) -> list[Path]:
        """Copy files matching glob patterns from cwd into target.

        Relative paths below cwd are preserved. Returns the copied sources.
        """
        source_root = Path(cwd)
        target_root = Path(target)
        copied: list[Path] = []
        for pattern in patterns:
            for source in sorted(source_root.glob(pattern)):
                if not source.is_file():
                    continue
                destination = target_root / source.relative_to(source_root)
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)
                copied.append(source)
        self.log.verbose(f"Copied {len(copied)} file(s) to {target_root}")
        return copied

    def remove(self, path: str | Path, scratch: bool = False) -> None:
        """Recursively delete a directory.

        Skipped in dry-run, except for scratch directories this run created
        itself (they were created in dry-run too).
        """
        target = Path(path)
        if self.config.is_dry_run and not scratch:
            self.log.exec(f"rm -rf {target}", executed=False)
            return
        self.log.exec(f"rm -rf {target}")
        if target.exists():
            shutil.rmtree(target)
