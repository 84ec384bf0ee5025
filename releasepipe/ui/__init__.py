"""Terminal interaction: spinner and prompts."""

from releasepipe.ui.prompt import Prompt
from releasepipe.ui.spinner import Spinner

__all__ = ["Prompt", "Spinner"]
