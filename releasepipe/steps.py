"""Step descriptors and the two ways of executing them.

Every mutating action of a release is wrapped in a Step and handed to the
run's executor, selected once from the interactivity of the run:

- UnattendedExecutor shows each step with a spinner and runs it
- InteractiveExecutor asks for confirmation first when a step names a prompt

Skipping a step (disabled, or declined by the user) is never an error.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from releasepipe.ui.prompt import Prompt
    from releasepipe.ui.spinner import Spinner
    from releasepipe.utils.shell import Shell


@dataclass
class Step:
    """A labelled unit of work.

    For lifecycle hooks `enabled` only says whether a script is configured,
    and `forced` asks the spinner to show the step even where spinners are
    otherwise off.
    """

    task: Callable[..., Any]
    label: str = ""
    enabled: bool = True
    prompt: str | None = None
    forced: bool = False


OtpCallback = Callable[[Callable[[str], Any]], Any]


class Executor(Protocol):
    otp_callback: OtpCallback | None

    def __call__(self, step: Step) -> Any: ...

    def group(self, steps: Sequence[Step], label: str, prompt: str | None = None) -> Any: ...


class UnattendedExecutor:
    """Runs steps without asking; each step of a group stands alone."""

    def __init__(self, spinner: "Spinner") -> None:
        self.spinner = spinner
        self.otp_callback: OtpCallback | None = None

    def __call__(self, step: Step) -> Any:
        return self.spinner.show(step)

    def group(self, steps: Sequence[Step], label: str, prompt: str | None = None) -> Any:
        result = None
        for step in steps:
            result = self(step)
        return result


class InteractiveExecutor:
    """Asks before running any step that names a prompt."""

    def __init__(self, spinner: "Spinner", prompt: "Prompt") -> None:
        self.spinner = spinner
        self.prompt = prompt

    def __call__(self, step: Step) -> Any:
        if step.prompt:
            return self.prompt.show(step)
        return self.spinner.show(step)

    def group(self, steps: Sequence[Step], label: str, prompt: str | None = None) -> Any:
        """One confirmation for the whole chain.

        The chain stops at the first step whose result is falsy.
        """
        if not steps:
            return None

        def chain() -> Any:
            result: Any = None
            for step in steps:
                if not step.enabled:
                    continue
                result = step.task()
                if not result:
                    break
            return result

        return self(Step(task=chain, label=label, enabled=steps[0].enabled, prompt=prompt))

    def otp_callback(self, task: Callable[[str], Any]) -> Any:
        return self.prompt.show(Step(task=task, label="npm OTP", prompt="otp"))


def select_executor(
    is_interactive: bool,
    spinner: "Spinner",
    prompt: "Prompt | None" = None,
) -> UnattendedExecutor | InteractiveExecutor:
    if is_interactive:
        if prompt is None:
            raise ValueError("An interactive run needs a Prompt")
        return InteractiveExecutor(spinner, prompt)
    return UnattendedExecutor(spinner)


def hook_step(script: str | None, shell: "Shell") -> Step:
    """Step running a lifecycle hook; disabled when no script is set."""
    return Step(
        task=lambda: shell.run_template_command(script or ""),
        label=script or "",
        enabled=bool(script),
        forced=True,
    )
