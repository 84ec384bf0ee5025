"""Interactive confirmation and input prompts."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.prompt import Confirm
from rich.prompt import Prompt as RichPrompt
from rich.table import Table

from releasepipe.utils.version import PRE_RELEASE_TYPES, RELEASE_TYPES, increment_version

if TYPE_CHECKING:
    from releasepipe.config.models import ReleaseOptions
    from releasepipe.config.runtime import Config
    from releasepipe.steps import Step

OTHER = "Other, please specify..."


class Prompt:
    """Named prompts used by the interactive executor.

    Confirm prompts (commit, tag, push, ghRelease, glRelease, publish) run
    the task only on "yes" and return False otherwise. Input prompts
    (version, otp, incrementList) pass the answer to the task.
    """

    def __init__(self, config: "Config", console: Console | None = None) -> None:
        self.config = config
        self.console = console or Console()
        self.confirms: dict[str, Callable[[], str]] = {
            "commit": lambda: f"Commit ({self._format(self.options.git.commit_message)})?",
            "tag": lambda: f"Tag ({self._format(self.options.git.tag_name)})?",
            "push": lambda: "Push?",
            "ghRelease": lambda: (
                f"Create a release on GitHub ({self._format(self.options.github.release_name)})?"
            ),
            "glRelease": lambda: (
                f"Create a release on GitLab ({self._format(self.options.gitlab.release_name)})?"
            ),
            "publish": lambda: f"Publish {self.options.npm.name or ''} to npm?",
        }

    @property
    def options(self) -> "ReleaseOptions":
        return self.config.options

    def _format(self, template: str) -> str:
        return self.config.format(template)

    def show(self, step: "Step") -> Any:
        if not step.enabled:
            return False
        name = step.prompt
        if name in self.confirms:
            if Confirm.ask(self.confirms[name](), default=True, console=self.console):
                return step.task()
            return False
        if name == "incrementList":
            return step.task(self.ask_increment())
        if name == "version":
            return step.task(RichPrompt.ask("Please enter a valid version", console=self.console))
        if name == "otp":
            return step.task(
                RichPrompt.ask("Please enter OTP for npm", password=True, console=self.console)
            )
        raise ValueError(f"Unknown prompt: {name}")

    def ask_increment(self) -> str | None:
        """Offer the next versions; returns the chosen kind, None for 'Other'."""
        runtime = self.config.runtime_options
        latest = runtime.get("latest_version") or "0.0.0"
        pre_release_id = runtime.get("pre_release_id")
        kinds = [*RELEASE_TYPES, *PRE_RELEASE_TYPES]

        table = Table(title=f"Select increment (current version: {latest})")
        table.add_column("#", style="cyan")
        table.add_column("Increment")
        table.add_column("Version")
        for index, kind in enumerate(kinds, start=1):
            table.add_row(str(index), kind, increment_version(latest, kind, pre_release_id))
        table.add_row(str(len(kinds) + 1), OTHER, "")
        self.console.print(table)

        choices = [str(i) for i in range(1, len(kinds) + 2)]
        answer = RichPrompt.ask("Increment", choices=choices, default="1", console=self.console)
        index = int(answer) - 1
        return kinds[index] if index < len(kinds) else None
