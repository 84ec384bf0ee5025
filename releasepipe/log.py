"""User-facing console output for a release run.

Everything the user reads while a release runs goes through Logger. Internal
diagnostics use the standard logging module instead (configured by the CLI).
"""

from rich.console import Console
from rich.text import Text
from rich.traceback import Traceback


class Logger:
    """Console logger aware of the interactive, verbose and dry-run flags."""

    def __init__(
        self,
        is_interactive: bool = False,
        is_verbose: bool = False,
        is_dry_run: bool = False,
        console: Console | None = None,
        error_console: Console | None = None,
    ) -> None:
        self.is_interactive = is_interactive
        self.is_verbose = is_verbose
        self.is_dry_run = is_dry_run
        self.console = console or Console(highlight=False)
        self.error_console = error_console or Console(stderr=True, highlight=False)

    def log(self, message: str) -> None:
        self.console.print(message, markup=False)

    def error(self, message: str) -> None:
        self.error_console.print(Text.assemble(("ERROR", "red"), " ", message))

    def warn(self, message: str) -> None:
        self.console.print(Text.assemble(("WARNING", "yellow"), " ", message))

    def info(self, message: str) -> None:
        """Print a hint, only when a human is watching."""
        if self.is_interactive:
            self.console.print(Text(message, style="dim"))

    def verbose(self, message: str) -> None:
        if self.is_verbose:
            self.log(message)

    def exec(self, command: str, executed: bool = True) -> None:
        """Echo a command in verbose or dry-run mode.

        Executed commands are prefixed with '$', skipped ones with '!'.
        """
        if self.is_verbose or self.is_dry_run:
            prefix = "$" if executed else "!"
            self.log(f"{prefix} {command}")

    def preview(self, title: str, text: str | None) -> None:
        """Show a block of generated text (changelog, changeset, notes)."""
        if text:
            self.console.print(Text(title.capitalize() + ":", style="bold"))
            self.log(text)
        else:
            self.log(f"Empty {title}")

    def diagnostic(self, err: BaseException) -> None:
        """Print an unexpected error with its traceback."""
        if err.__traceback__ is None:
            self.error_console.print(repr(err), markup=False)
            return
        self.error_console.print(
            Traceback.from_exception(type(err), err, err.__traceback__)
        )
