"""Reverting the version bump when an interactive run is aborted."""

import atexit
import logging
import signal
from types import FrameType
from typing import TYPE_CHECKING, Any

from releasepipe.exceptions import ReleaseError
from releasepipe.utils.shell import ShellError

if TYPE_CHECKING:
    from releasepipe.git.client import Git
    from releasepipe.log import Logger

logger = logging.getLogger(__name__)


class RevertGuard:
    """Restores bumped manifest files on Ctrl-C or abnormal exit.

    Armed from just before the bump until the primary release sequence has
    finished. revert() runs at most once and never raises.
    """

    def __init__(self, git: "Git", files: list[str] | None, log: "Logger") -> None:
        self.git = git
        self.files = list(files or [])
        self.log = log
        self.is_armed = False
        self.is_reverted = False
        self._previous_handler: Any = None

    def arm(self) -> None:
        if self.is_armed or not self.files:
            return
        atexit.register(self.revert)
        try:
            self._previous_handler = signal.signal(signal.SIGINT, self._on_interrupt)
        except ValueError:
            # signal handlers can only be installed from the main thread
            logger.debug("SIGINT handler not installed (not in main thread)")
            self._previous_handler = None
        self.is_armed = True

    def disarm(self) -> None:
        if not self.is_armed:
            return
        atexit.unregister(self.revert)
        self.restore_interrupt_handler()
        self.is_armed = False

    def restore_interrupt_handler(self) -> None:
        """Put back the previous SIGINT handler; revert-at-exit stays registered."""
        if self._previous_handler is None:
            return
        try:
            signal.signal(signal.SIGINT, self._previous_handler)
        except ValueError:
            logger.debug("SIGINT handler not restored (not in main thread)")
        self._previous_handler = None

    def _on_interrupt(self, signum: int, frame: FrameType | None) -> None:
        self.revert()
        raise KeyboardInterrupt

    def revert(self) -> None:
        if self.is_reverted:
            return
        self.is_reverted = True
        try:
            self.git.reset(self.files)
        except (ReleaseError, ShellError, OSError) as e:
            self.log.warn(f"Could not revert {', '.join(self.files)}: {e}")
        else:
            self.log.info(f"Reverted {', '.join(self.files)}")
