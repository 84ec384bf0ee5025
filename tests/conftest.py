"""Pytest fixtures for releasepipe tests.

Provides common fixtures for:
- Temporary project directories
- Git repositories with a bare "remote" they push to
- Node.js and Python test projects
- Quiet loggers and spinners
- A Shell that fakes the npm CLI
"""

import io
import json
import os
import subprocess
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from releasepipe.config.models import ReleaseOptions
from releasepipe.config.runtime import Config
from releasepipe.log import Logger
from releasepipe.ui.spinner import Spinner
from releasepipe.utils.shell import Shell, ShellError


def git(cwd: Path, *args: str) -> str:
    """Run git in cwd and return its stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_all(cwd: Path, message: str) -> None:
    git(cwd, "add", "--all")
    git(cwd, "commit", "--message", message)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory
    """
    yield tmp_path
    # Cleanup handled by pytest's tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory.

    Returns:
        Path to project directory
    """
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def git_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Commit identity for every git call; no CI or RELEASEPIPE_ leakage."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@test.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@test.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.delenv("CI", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITLAB_TOKEN", raising=False)
    monkeypatch.delenv("RELEASEPIPE_METRICS_URL", raising=False)
    for key in list(os.environ):
        if key.startswith("RELEASEPIPE_"):
            monkeypatch.delenv(key)


@pytest.fixture
def bare_remote(temp_dir: Path, git_env: None) -> Path:
    """Create an empty bare repository acting as "origin".

    Returns:
        Path to the bare repository
    """
    remote = temp_dir / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", "--initial-branch=main", str(remote)],
        capture_output=True,
        check=True,
    )
    return remote


@pytest.fixture
def git_repo(project_dir: Path, bare_remote: Path) -> Path:
    """Create a git repository whose origin is bare_remote.

    Returns:
        Path to git repository
    """
    git(project_dir, "init", "--initial-branch=main")
    git(project_dir, "remote", "add", "origin", str(bare_remote))
    return project_dir


@pytest.fixture
def nodejs_project(git_repo: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a released Node.js project at 1.0.0 and chdir into it.

    The initial commit is tagged 1.0.0 and pushed with upstream tracking.

    Returns:
        Path to project directory
    """
    package_json = {
        "name": "test-package",
        "version": "1.0.0",
        "description": "Test package",
        "main": "index.js",
    }
    (git_repo / "package.json").write_text(json.dumps(package_json, indent=2) + "\n")
    (git_repo / "index.js").write_text("module.exports = {};\n")

    commit_all(git_repo, "Initial commit")
    git(git_repo, "tag", "1.0.0")
    git(git_repo, "push", "--set-upstream", "origin", "main", "--tags")

    monkeypatch.chdir(git_repo)
    return git_repo


@pytest.fixture
def python_project(git_repo: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a Python project with pyproject.toml (no tag) and chdir into it.

    Returns:
        Path to project directory
    """
    import tomli_w

    pyproject = {
        "project": {
            "name": "test-package",
            "version": "1.0.0",
            "description": "Test package",
        },
        "build-system": {
            "requires": ["hatchling"],
            "build-backend": "hatchling.build",
        },
    }
    (git_repo / "pyproject.toml").write_text(tomli_w.dumps(pyproject))
    (git_repo / "src").mkdir()
    (git_repo / "src" / "__init__.py").write_text('__version__ = "1.0.0"\n')

    commit_all(git_repo, "Initial commit")
    git(git_repo, "push", "--set-upstream", "origin", "main")

    monkeypatch.chdir(git_repo)
    return git_repo


@pytest.fixture
def dist_remote(temp_dir: Path, git_env: None) -> Path:
    """Create a bare distribution repository with a README on main.

    Returns:
        Path to the bare distribution repository
    """
    remote = temp_dir / "dist.git"
    subprocess.run(
        ["git", "init", "--bare", "--initial-branch=main", str(remote)],
        capture_output=True,
        check=True,
    )
    seed = temp_dir / "dist-seed"
    subprocess.run(
        ["git", "clone", str(remote), str(seed)],
        capture_output=True,
        check=True,
    )
    (seed / "README.md").write_text("# Distribution\n")
    git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    commit_all(seed, "Initial commit")
    git(seed, "push", "--set-upstream", "origin", "main")
    return remote


@pytest.fixture
def output() -> io.StringIO:
    """Buffer collecting everything the quiet logger prints."""
    return io.StringIO()


@pytest.fixture
def log(output: io.StringIO) -> Logger:
    """Logger writing plain text into the output fixture."""
    console = Console(file=output, width=200, color_system=None, highlight=False)
    return Logger(console=console, error_console=console)


@pytest.fixture
def spinner() -> Spinner:
    """Spinner that never draws (non-interactive local run)."""
    return Spinner(console=Console(file=io.StringIO()))


@pytest.fixture
def make_config() -> Any:
    """Factory for a non-interactive Config."""

    def factory(**values: Any) -> Config:
        return Config(ReleaseOptions(**values), environ={}, is_tty=False)

    return factory


class FakeNpmShell(Shell):
    """Shell answering npm commands from a script instead of running npm.

    Every npm command is recorded in `npm_calls`. `npm_failures` maps a
    command prefix to the list of ShellErrors raised by its next calls.
    """

    npm_calls: list[str] = []
    npm_failures: dict[str, list[ShellError]] = {}

    def run(
        self,
        command: str | list[str],
        read_only: bool = False,
        timeout: float | None = None,
    ) -> str:
        if isinstance(command, str) and command.startswith("npm "):
            if self.config.is_dry_run and not read_only:
                self.log.exec(command, executed=False)
                return ""
            self.log.exec(command)
            type(self).npm_calls.append(command)
            for prefix, failures in type(self).npm_failures.items():
                if command.startswith(prefix) and failures:
                    raise failures.pop(0)
            return "test-user" if command == "npm whoami" else ""
        return super().run(command, read_only=read_only, timeout=timeout)


@pytest.fixture
def fake_npm_shell() -> Generator[type[FakeNpmShell], None, None]:
    """FakeNpmShell class with empty call and failure records."""
    FakeNpmShell.npm_calls = []
    FakeNpmShell.npm_failures = {}
    yield FakeNpmShell
    FakeNpmShell.npm_calls = []
    FakeNpmShell.npm_failures = {}


def otp_error() -> ShellError:
    return ShellError(
        "npm publish",
        1,
        "",
        "npm ERR! code EOTP\nnpm ERR! This operation requires a one-time password.",
    )
