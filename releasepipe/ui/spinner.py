"""Progress spinner around release steps."""

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.text import Text

if TYPE_CHECKING:
    from releasepipe.steps import Step


class Spinner:
    """Runs a step while drawing a spinner with its label.

    The spinner is off in verbose, dry-run and debug mode (their output
    would interleave with it) and for non-interactive local runs. Forced
    steps (lifecycle hooks) still get one in the latter case.
    """

    def __init__(
        self,
        is_ci: bool = False,
        is_interactive: bool = False,
        is_verbose: bool = False,
        is_dry_run: bool = False,
        is_debug: bool = False,
        console: Console | None = None,
    ) -> None:
        quiet = is_verbose or is_dry_run or is_debug
        self.is_disabled = (not is_ci and not is_interactive) or quiet
        self.can_force = not is_ci and not quiet
        self.console = console or Console()

    def show(self, step: "Step") -> Any:
        """Run the step's task; a disabled step returns None without running."""
        if not step.enabled:
            return None
        if self.is_disabled and not (step.forced and self.can_force):
            return step.task()

        label = step.label or "Working"
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}", markup=False),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            progress.add_task(label, total=None)
            try:
                result = step.task()
            except Exception:
                progress.stop()
                self.console.print(Text.assemble(("✖", "red"), " ", label))
                raise
        self.console.print(Text.assemble(("✔", "green"), " ", label))
        return result
