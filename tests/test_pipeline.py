"""End-to-end tests for releasepipe.pipeline.run_tasks().

Each test runs a complete (non-interactive) release against a temporary
git repository that pushes to a local bare remote.

Tests cover:
- Patch release: bump, commit, tag, push
- Dry run: nothing modified
- Recommended increment with a deferred changelog
- Lifecycle hooks order
- npm publish through a fake npm CLI
- Distribution repository release
- Validation order and the failure path
"""

import atexit
import json
import signal
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from conftest import commit_all, git
from releasepipe.config.loader import load_config
from releasepipe.config.runtime import Config
from releasepipe.exceptions import (
    GitCleanWorkingDirError,
    InvalidVersionError,
    RegistryAuthError,
    TokenError,
)
from releasepipe.log import Logger
from releasepipe.pipeline import PipelineResult, run_tasks
from releasepipe.ui.spinner import Spinner
from releasepipe.utils.shell import ShellError


def release(
    log: Logger,
    spinner: Spinner,
    overrides: dict[str, Any] | None = None,
    **kwargs: Any,
) -> PipelineResult:
    """Run a CI release with config files skipped."""
    options = load_config(False, overrides={"ci": True, **(overrides or {})})
    return run_tasks(options, log=log, spinner=spinner, **kwargs)


def remote_tags(remote: Path) -> list[str]:
    return git(remote, "tag", "--list").splitlines()


class TestPatchRelease:
    """Tests for a plain patch release of a Node.js project."""

    def test_patch_release(self, nodejs_project: Path, bare_remote: Path, log, spinner) -> None:
        result = release(log, spinner, {"increment": "patch", "npm": {"publish": False}})

        assert result == PipelineResult(
            name="test-package",
            changelog="",
            latest_version="1.0.0",
            version="1.0.1",
        )
        package = json.loads((nodejs_project / "package.json").read_text())
        assert package["version"] == "1.0.1"
        assert git(nodejs_project, "log", "-1", "--pretty=%s") == "Release 1.0.1"
        assert "1.0.1" in git(nodejs_project, "tag", "--list").splitlines()
        assert "1.0.1" in remote_tags(bare_remote)
        assert git(bare_remote, "rev-parse", "main") == git(nodejs_project, "rev-parse", "HEAD")

    def test_default_increment_is_patch(self, nodejs_project: Path, log, spinner) -> None:
        result = release(log, spinner, {"npm": {"publish": False}})
        assert result.version == "1.0.1"

    def test_changelog_lists_commits_since_tag(
        self, nodejs_project: Path, log, spinner, output
    ) -> None:
        (nodejs_project / "index.js").write_text("module.exports = { a: 1 };\n")
        commit_all(nodejs_project, "Add a")

        result = release(log, spinner, {"increment": "minor", "npm": {"publish": False}})

        assert result.version == "1.1.0"
        assert result.changelog is not None
        assert result.changelog.startswith("* Add a (")
        text = output.getvalue()
        assert "🚀 Let's release test-package (1.0.0...1.1.0)" in text
        assert "Changelog:" in text
        assert "🏁 Done" in text

    def test_explicit_version(self, nodejs_project: Path, bare_remote: Path, log, spinner) -> None:
        result = release(log, spinner, {"increment": "2.0.0-rc.1", "npm": {"publish": False}})
        assert result.version == "2.0.0-rc.1"
        assert "2.0.0-rc.1" in remote_tags(bare_remote)

    def test_dry_run_changes_nothing(
        self, nodejs_project: Path, bare_remote: Path, log, spinner
    ) -> None:
        head = git(nodejs_project, "rev-parse", "HEAD")

        result = release(
            log, spinner, {"increment": "minor", "dry_run": True, "npm": {"publish": False}}
        )

        assert result.version == "1.1.0"
        package = json.loads((nodejs_project / "package.json").read_text())
        assert package["version"] == "1.0.0"
        assert git(nodejs_project, "rev-parse", "HEAD") == head
        assert remote_tags(bare_remote) == ["1.0.0"]

    def test_python_project_uses_pyproject(
        self, python_project: Path, bare_remote: Path, log, spinner
    ) -> None:
        result = release(log, spinner, {"increment": "minor", "use": "pkg.version"})

        assert result.latest_version == "1.0.0"
        assert result.version == "1.1.0"
        assert 'version = "1.1.0"' in (python_project / "pyproject.toml").read_text()
        assert remote_tags(bare_remote) == ["1.1.0"]


class TestRecommendedIncrement:
    """Tests for conventional increments."""

    def test_feature_commit_bumps_minor(self, nodejs_project: Path, log, spinner) -> None:
        (nodejs_project / "index.js").write_text("module.exports = { b: 2 };\n")
        commit_all(nodejs_project, "feat: add b")

        result = release(log, spinner, {"increment": "conventional", "npm": {"publish": False}})

        assert result.version == "1.1.0"
        assert result.changelog is not None
        assert "feat: add b" in result.changelog

    def test_breaking_change_bumps_major(self, nodejs_project: Path, log, spinner) -> None:
        (nodejs_project / "index.js").write_text("module.exports = null;\n")
        commit_all(nodejs_project, "refactor!: drop exports")

        result = release(
            log, spinner, {"increment": "conventional:angular", "npm": {"publish": False}}
        )

        assert result.version == "2.0.0"

    def test_recommendation_reads_changelog_after_bump(
        self, nodejs_project: Path, log, spinner
    ) -> None:
        (nodejs_project / "index.js").write_text("module.exports = { c: 3 };\n")
        commit_all(nodejs_project, "feat: add c")

        result = release(
            log,
            spinner,
            {
                "increment": "conventional",
                "npm": {"publish": False},
                "scripts": {"changelog": "grep version package.json"},
            },
        )

        assert result.changelog is not None
        assert "1.1.0" in result.changelog

    def test_fixed_increment_reads_changelog_before_bump(
        self, nodejs_project: Path, log, spinner
    ) -> None:
        result = release(
            log,
            spinner,
            {
                "increment": "patch",
                "npm": {"publish": False},
                "scripts": {"changelog": "grep version package.json"},
            },
        )

        assert result.version == "1.0.1"
        assert result.changelog is not None
        assert "1.0.0" in result.changelog
        assert "1.0.1" not in result.changelog


class TestHooks:
    """Tests for lifecycle hook ordering."""

    def test_hook_order(self, nodejs_project: Path, temp_dir: Path, log, spinner) -> None:
        hooks_log = temp_dir / "hooks.log"

        def hook(name: str) -> str:
            return f"echo {name} ${{version}} >> {hooks_log}"

        release(
            log,
            spinner,
            {
                "increment": "patch",
                "npm": {"publish": False},
                "scripts": {
                    "before_start": hook("before_start"),
                    "before_bump": hook("before_bump"),
                    "after_bump": hook("after_bump"),
                    "before_stage": hook("before_stage"),
                    "after_release": hook("after_release"),
                },
            },
        )

        assert hooks_log.read_text().split("\n")[:-1] == [
            "before_start",
            "before_bump 1.0.1",
            "after_bump 1.0.1",
            "before_stage 1.0.1",
            "after_release 1.0.1",
        ]

    def test_failing_hook_aborts(self, nodejs_project: Path, bare_remote: Path, log, spinner) -> None:
        with pytest.raises(ShellError):
            release(
                log,
                spinner,
                {"increment": "patch", "npm": {"publish": False}, "scripts": {"before_bump": "exit 3"}},
            )
        assert remote_tags(bare_remote) == ["1.0.0"]


class TestNpmPublish:
    """Tests for publishing through the npm CLI."""

    def test_publish(self, nodejs_project: Path, log, spinner, fake_npm_shell, output) -> None:
        result = release(log, spinner, {"increment": "patch"}, shell_class=fake_npm_shell)

        assert result.version == "1.0.1"
        assert fake_npm_shell.npm_calls == [
            "npm ping",
            "npm whoami",
            "npm publish . --tag latest",
        ]
        assert "🔗 https://www.npmjs.com/package/test-package" in output.getvalue()

    def test_pre_release_dist_tag(self, nodejs_project: Path, log, spinner, fake_npm_shell) -> None:
        result = release(
            log,
            spinner,
            {"increment": "minor", "pre_release": "beta"},
            shell_class=fake_npm_shell,
        )

        assert result.version == "1.1.0-beta.0"
        assert fake_npm_shell.npm_calls[-1] == "npm publish . --tag beta"

    def test_not_authenticated(self, nodejs_project: Path, log, spinner, fake_npm_shell) -> None:
        fake_npm_shell.npm_failures["npm whoami"] = [ShellError("npm whoami", 1, "", "E401")]

        with pytest.raises(RegistryAuthError):
            release(log, spinner, {"increment": "patch"}, shell_class=fake_npm_shell)

        package = json.loads((nodejs_project / "package.json").read_text())
        assert package["version"] == "1.0.0"
        assert not any(call.startswith("npm publish") for call in fake_npm_shell.npm_calls)

    def test_private_package_skipped(
        self, nodejs_project: Path, log, spinner, fake_npm_shell, output
    ) -> None:
        release(log, spinner, {"increment": "patch", "npm": {"private": True}}, shell_class=fake_npm_shell)

        assert not any(call.startswith("npm publish") for call in fake_npm_shell.npm_calls)
        assert "Skip publish: package is private." in output.getvalue()


class TestDistRepository:
    """Tests for the distribution repository sub-release."""

    @pytest.fixture
    def built_project(self, nodejs_project: Path) -> Path:
        (nodejs_project / ".gitignore").write_text("dist/\n.stage/\n")
        commit_all(nodejs_project, "Ignore build output")
        git(nodejs_project, "push")
        (nodejs_project / "dist").mkdir()
        (nodejs_project / "dist" / "app.js").write_text("console.log('built');\n")
        return nodejs_project

    def test_dist_release(self, built_project: Path, dist_remote: Path, log, spinner, output) -> None:
        result = release(
            log,
            spinner,
            {
                "increment": "patch",
                "npm": {"publish": False},
                "dist": {
                    "repo": str(dist_remote),
                    "scripts": {"before_stage": "echo appended >> README.md"},
                },
            },
        )

        assert result.version == "1.0.1"
        assert git(dist_remote, "show", "main:app.js") == "console.log('built');"
        assert "appended" in git(dist_remote, "show", "main:README.md")
        assert git(dist_remote, "log", "-1", "--pretty=%s", "main") == "Release 1.0.1"
        assert remote_tags(dist_remote) == ["1.0.1"]
        assert not (built_project / ".stage").exists()
        assert "🚀 Let's release the distribution repo for test-package" in output.getvalue()

    def test_stage_dir_removed_on_failure(
        self, built_project: Path, dist_remote: Path, log, spinner
    ) -> None:
        with pytest.raises(ShellError):
            release(
                log,
                spinner,
                {
                    "increment": "patch",
                    "npm": {"publish": False},
                    "dist": {"repo": str(dist_remote), "scripts": {"before_stage": "exit 1"}},
                },
            )
        assert not (built_project / ".stage").exists()
        assert remote_tags(dist_remote) == []


class TestFailures:
    """Tests for validation order and error reporting."""

    def test_dirty_tree_reported_before_missing_token(
        self, nodejs_project: Path, log, spinner
    ) -> None:
        (nodejs_project / "index.js").write_text("// dirty\n")
        with pytest.raises(GitCleanWorkingDirError):
            release(log, spinner, {"github": {"release": True}, "npm": {"publish": False}})

    def test_missing_token_reported_before_invalid_increment(
        self, nodejs_project: Path, log, spinner
    ) -> None:
        with pytest.raises(TokenError):
            release(
                log,
                spinner,
                {"increment": "bogus", "github": {"release": True}, "npm": {"publish": False}},
            )

    def test_invalid_increment(self, nodejs_project: Path, log, spinner, output) -> None:
        with pytest.raises(InvalidVersionError):
            release(log, spinner, {"increment": "bogus", "npm": {"publish": False}})
        assert "ERROR An invalid version was provided." in output.getvalue()

    def test_version_not_greater(self, nodejs_project: Path, log, spinner) -> None:
        with pytest.raises(InvalidVersionError):
            release(log, spinner, {"increment": "0.9.0", "npm": {"publish": False}})

    def test_failure_tracked(self, nodejs_project: Path, log, spinner) -> None:
        (nodejs_project / "index.js").write_text("// dirty\n")
        metrics = MagicMock()

        with pytest.raises(GitCleanWorkingDirError) as exc_info:
            release(log, spinner, {"npm": {"publish": False}}, metrics=metrics)

        metrics.track_event.assert_called_once()
        metrics.track_exception.assert_called_once_with(exc_info.value)

    def test_unexpected_error_logged_as_diagnostic(self, nodejs_project: Path, spinner) -> None:
        log = MagicMock()
        metrics = MagicMock()
        metrics.track_event.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            release(log, spinner, {"npm": {"publish": False}}, metrics=metrics)

        log.diagnostic.assert_called_once()
        log.error.assert_not_called()


class TestInteractive:
    """Interactive runs with a scripted prompt."""

    @staticmethod
    def scripted_prompt(answers: dict[str, Any]) -> MagicMock:
        """Prompt answering each named prompt from answers (confirm: bool, input: str)."""

        def show(step):
            if not step.enabled:
                return False
            answer = answers.get(step.prompt, True)
            if answer is True:
                return step.task()
            if answer is False:
                return False
            return step.task(answer)

        prompt = MagicMock()
        prompt.show.side_effect = show
        return prompt

    def interactive_config(self) -> Config:
        options = load_config(False, overrides={"npm": {"publish": False}})
        return Config(options, environ={}, is_tty=True)

    def test_increment_chosen_from_list(self, nodejs_project: Path, bare_remote: Path, log, spinner) -> None:
        prompt = self.scripted_prompt({"incrementList": "minor"})

        result = run_tasks(self.interactive_config(), log=log, spinner=spinner, prompt=prompt)

        assert result.version == "1.1.0"
        assert "1.1.0" in remote_tags(bare_remote)
        prompts = [call.args[0].prompt for call in prompt.show.call_args_list]
        assert prompts == [
            "incrementList",
            "commit",
            "tag",
            "push",
            "ghRelease",
            "glRelease",
            "publish",
        ]

    def test_other_asks_for_version(self, nodejs_project: Path, log, spinner) -> None:
        prompt = self.scripted_prompt({"incrementList": None, "version": "3.0.0"})

        result = run_tasks(self.interactive_config(), log=log, spinner=spinner, prompt=prompt)

        assert result.version == "3.0.0"

    def test_declined_push(self, nodejs_project: Path, bare_remote: Path, log, spinner) -> None:
        prompt = self.scripted_prompt({"incrementList": "patch", "push": False})

        result = run_tasks(self.interactive_config(), log=log, spinner=spinner, prompt=prompt)

        assert result.version == "1.0.1"
        assert "1.0.1" in git(nodejs_project, "tag", "--list").splitlines()
        assert remote_tags(bare_remote) == ["1.0.0"]

    def test_failed_run_gives_back_interrupt_handler(self, nodejs_project: Path, log, spinner) -> None:
        previous = signal.getsignal(signal.SIGINT)
        options = load_config(
            False, overrides={"npm": {"publish": False}, "scripts": {"after_bump": "exit 1"}}
        )
        prompt = self.scripted_prompt({"incrementList": "patch"})

        with patch.object(atexit, "register") as register:
            with pytest.raises(ShellError):
                run_tasks(Config(options, environ={}, is_tty=True), log=log, spinner=spinner, prompt=prompt)

        register.assert_called()
        assert signal.getsignal(signal.SIGINT) == previous
