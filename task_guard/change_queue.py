"""
Change queue between the watcher/signal threads and the control thread.

Producers (watcher callback, signal handlers, interactive shell) push
entries from any thread. Only the control thread drains.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union


class ActionKind(str, Enum):
    """Control actions understood by the dispatch loop."""

    PAUSE = "pause"
    RELOAD = "reload"
    RUN_ALL = "run_all"
    STOP = "stop"


class PauseMode(str, Enum):
    PAUSED = "paused"
    UNPAUSED = "unpaused"
    TOGGLE = "toggle"


@dataclass
class ChangeBatch:
    """Modified/added/removed path lists from one notification burst."""

    modified: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.modified or self.added or self.removed)

    def all_paths(self) -> List[str]:
        return self.modified + self.added + self.removed

    def extend(self, other: "ChangeBatch") -> None:
        self.modified.extend(other.modified)
        self.added.extend(other.added)
        self.removed.extend(other.removed)

    def as_tuple(self) -> Tuple[List[str], List[str], List[str]]:
        return self.modified, self.added, self.removed


@dataclass(frozen=True)
class ControlAction:
    """A symbolic request (pause, reload, ...) with an optional argument."""

    kind: ActionKind
    argument: Any = None


QueueEntry = Union[ChangeBatch, ControlAction]


class ChangeQueue:
    """
    Thread-safe unbounded FIFO of ChangeBatch and ControlAction entries.

    push() never blocks. drain_all() atomically takes every queued entry.
    """

    def __init__(self, on_push: Optional[Callable[[], None]] = None):
        """
        Initialize the queue.

        Args:
            on_push: Called (outside the lock) after every push, e.g. to put
                the interactive shell into the background
        """
        self._entries: deque = deque()
        self._condition = threading.Condition()
        self.on_push = on_push

    def push(self, entry: QueueEntry) -> None:
        """Add an entry; callable from any thread."""
        if not isinstance(entry, (ChangeBatch, ControlAction)):
            raise TypeError(f"Cannot queue {type(entry).__name__}")

        with self._condition:
            self._entries.append(entry)
            self._condition.notify_all()

        if self.on_push is not None:
            self.on_push()

    def has_pending(self) -> bool:
        return bool(self._entries)

    def __len__(self):
        return len(self._entries)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until an entry is queued.

        Returns:
            True if entries are pending when the wait ends
        """
        with self._condition:
            if not self._entries:
                self._condition.wait(timeout)
            return bool(self._entries)

    def drain_all(self) -> Tuple[List[ControlAction], ChangeBatch]:
        """
        Remove every queued entry.

        Returns:
            Tuple of (actions in arrival order, merged change batch).
            Change paths are concatenated in arrival order, duplicates kept.
        """
        # A signal handler on this thread may push while the (reentrant)
        # lock is held; it must land in the new deque.
        with self._condition:
            entries, self._entries = self._entries, deque()

        actions: List[ControlAction] = []
        changes = ChangeBatch()
        for entry in entries:
            if isinstance(entry, ControlAction):
                actions.append(entry)
            else:
                changes.extend(entry)
        return actions, changes
