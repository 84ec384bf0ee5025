"""Changelog text generation by running a configurable command."""

from typing import TYPE_CHECKING

from releasepipe.config.models import DEFAULT_CHANGELOG_COMMAND

if TYPE_CHECKING:
    from releasepipe.utils.shell import Shell

REV_RANGE = "[REV_RANGE]"


class Changelog:
    """Runs the changelog command for the commits since the latest tag."""

    def __init__(self, shell: "Shell") -> None:
        self.shell = shell

    def generate(self, command: str | None = None, latest_tag: str | None = None) -> str:
        """Return the changelog text (empty when there is no command).

        `[REV_RANGE]` in the command expands to `<latest_tag>...HEAD`, or to
        nothing when the repository has no tag yet.
        """
        if command is None:
            command = DEFAULT_CHANGELOG_COMMAND
        if not command:
            return ""
        rev_range = f"{latest_tag}...HEAD" if latest_tag else ""
        return self.shell.run(command.replace(REV_RANGE, rev_range), read_only=True)
