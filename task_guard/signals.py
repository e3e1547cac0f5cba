"""
OS signal routing.

SIGUSR1 queues a pause request, SIGUSR2 queues a resume request. SIGINT is
handed straight to the interactive shell without going through the queue.
Handlers only enqueue; they never touch the pause state themselves.
"""

import logging
import signal
from typing import Callable, Dict, List, Optional

from task_guard.change_queue import ActionKind, ChangeQueue, ControlAction, PauseMode


logger = logging.getLogger(__name__)

PAUSE_SIGNAL = "SIGUSR1"
RESUME_SIGNAL = "SIGUSR2"
INTERRUPT_SIGNAL = "SIGINT"


class SignalRouter:
    """Installs the pause/resume/interrupt signal handlers."""

    def __init__(
        self,
        queue: ChangeQueue,
        interrupt_handler: Optional[Callable[[], None]] = None
    ):
        """
        Initialize router.

        Args:
            queue: Queue receiving pause/resume control actions
            interrupt_handler: Called synchronously on SIGINT
        """
        self.queue = queue
        self.interrupt_handler = interrupt_handler
        self._previous: Dict[int, object] = {}

    def _pause_handler(self, signum, frame) -> None:
        self._enqueue(PauseMode.PAUSED)

    def _resume_handler(self, signum, frame) -> None:
        self._enqueue(PauseMode.UNPAUSED)

    def _enqueue(self, mode: PauseMode) -> None:
        try:
            self.queue.push(ControlAction(ActionKind.PAUSE, mode))
        except Exception:
            logger.error("Could not queue %s request", mode.value, exc_info=True)

    def _interrupt_handler(self, signum, frame) -> None:
        if self.interrupt_handler is None:
            raise KeyboardInterrupt
        self.interrupt_handler()

    def install(self) -> List[str]:
        """
        Install the handlers this platform supports.

        Missing signals, or being off the main thread, make installation a
        no-op rather than an error.

        Returns:
            Names of the signals that were installed
        """
        handlers = (
            (PAUSE_SIGNAL, self._pause_handler),
            (RESUME_SIGNAL, self._resume_handler),
            (INTERRUPT_SIGNAL, self._interrupt_handler),
        )

        installed = []
        for name, handler in handlers:
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            try:
                self._previous[signum] = signal.signal(signum, handler)
            except (ValueError, OSError) as e:
                logger.debug("Cannot install %s handler: %s", name, e)
                continue
            installed.append(name)

        logger.debug("Installed signal handlers: %s", ", ".join(installed) or "none")
        return installed

    def restore(self) -> None:
        """Put back the handlers that were active before install()."""
        for signum, previous in self._previous.items():
            try:
                signal.signal(signum, previous)
            except (ValueError, OSError, TypeError) as e:
                logger.debug("Cannot restore handler for %s: %s", signum, e)
        self._previous = {}
