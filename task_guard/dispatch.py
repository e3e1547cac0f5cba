"""
Dispatch loop running on the control thread.

Drains the change queue, applies control actions in arrival order, then
forwards the merged change batch. Actions always run before the changes
drained in the same cycle.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from task_guard.change_queue import ActionKind, ChangeBatch, ChangeQueue, ControlAction
from task_guard.constants import DISPATCH_POLL_INTERVAL
from task_guard.errors import UnknownActionError


logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"


class DispatchLoop:
    """Single consumer of the change queue."""

    def __init__(
        self,
        queue: ChangeQueue,
        coordinator,
        poll_interval: float = DISPATCH_POLL_INTERVAL,
        after_cycle: Optional[Callable[[], None]] = None
    ):
        """
        Initialize loop.

        Args:
            queue: Queue to drain
            coordinator: Receives control actions and change batches
            poll_interval: Max seconds to block before re-checking for stop
            after_cycle: Called after each drain cycle (e.g. interactor.foreground)
        """
        self.queue = queue
        self.coordinator = coordinator
        self.poll_interval = poll_interval
        self.after_cycle = after_cycle
        self.state = LoopState.IDLE
        self._stop_requested = threading.Event()

    def stop(self) -> None:
        self._stop_requested.set()

    @property
    def stopped(self) -> bool:
        return self._stop_requested.is_set()

    def run(self) -> None:
        """Process queue entries until stop() is called."""
        while not self.stopped:
            if not self.queue.wait(self.poll_interval):
                continue
            self.run_once()

    def run_once(self) -> bool:
        """
        Run one drain cycle.

        Returns:
            True if anything was drained
        """
        if not self.queue.has_pending():
            return False

        self.state = LoopState.DRAINING
        try:
            actions, changes = self.queue.drain_all()
            for action in actions:
                self.apply(action)
            if not changes.is_empty():
                self.dispatch_changes(changes)
        finally:
            self.state = LoopState.IDLE

        if self.after_cycle is not None:
            self.after_cycle()
        return True

    def apply(self, action: ControlAction) -> None:
        """
        Run the coordinator operation for a control action.

        Raises:
            UnknownActionError: If the action kind has no handler
        """
        kind = action.kind
        logger.debug("Applying control action %s(%r)", getattr(kind, "value", kind), action.argument)

        if kind == ActionKind.PAUSE:
            self.coordinator.pause(action.argument)
        elif kind == ActionKind.RELOAD:
            self.coordinator.reload(action.argument)
        elif kind == ActionKind.RUN_ALL:
            self.coordinator.run_all(action.argument)
        elif kind == ActionKind.STOP:
            self.stop()
        else:
            raise UnknownActionError(f"Unknown action: {kind!r}")

    def dispatch_changes(self, changes: ChangeBatch) -> None:
        # Plugin failures are already isolated by the runner
        try:
            self.coordinator.process_changes(changes)
        except Exception:
            logger.error("Error dispatching changes", exc_info=True)
