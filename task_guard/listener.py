"""
File system listener using watchdog.

Collects raw watchdog events for every watch directory into one
(modified, added, removed) burst and hands it to a single callback once
the burst has been quiet for ``wait_for_delay`` seconds.
"""

import fnmatch
import logging
import os
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from task_guard.constants import TASK_GUARD_DEBOUNCE_MS


logger = logging.getLogger(__name__)

ChangeCallback = Callable[[List[str], List[str], List[str]], None]

DEFAULT_IGNORE = [".git/*", "*/.git/*", "*.swp", "*~", "__pycache__/*", "*/__pycache__/*"]


class ChangeListener(FileSystemEventHandler):
    """
    Watches directories and reports debounced change bursts.

    pause() stops the observer; unpause() starts a fresh one.
    """

    def __init__(
        self,
        directories: Sequence[str],
        callback: ChangeCallback,
        latency: Optional[float] = None,
        force_polling: bool = False,
        wait_for_delay: Optional[float] = None
    ):
        """
        Initialize listener.

        Args:
            directories: Absolute directories to watch (recursively)
            callback: Called with (modified, added, removed) absolute paths
            latency: Observer polling timeout in seconds
            force_polling: Use the polling observer instead of native events
            wait_for_delay: Quiet period before a burst is flushed
        """
        super().__init__()
        self.directories = [str(d) for d in directories]
        self.callback = callback
        self.latency = latency
        self.force_polling = force_polling
        if wait_for_delay is None:
            wait_for_delay = TASK_GUARD_DEBOUNCE_MS / 1000.0
        self.wait_for_delay = wait_for_delay

        self.ignore_patterns: List[str] = list(DEFAULT_IGNORE)

        self._observer = None
        self._paused = False
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Dict[str, List[str]] = self._empty_burst()

    @staticmethod
    def _empty_burst() -> Dict[str, List[str]]:
        return {"modified": [], "added": [], "removed": []}

    def ignore(self, patterns: Sequence[str]) -> None:
        """Add glob patterns (relative to a watch directory) to skip."""
        for pattern in patterns:
            if pattern not in self.ignore_patterns:
                self.ignore_patterns.append(pattern)

    # Lifecycle

    def _create_observer(self):
        observer_class = PollingObserver if self.force_polling else Observer
        if self.latency:
            return observer_class(timeout=self.latency)
        return observer_class()

    def start(self) -> None:
        """Start watching (no-op if already running)."""
        if self.is_running():
            return

        observer = self._create_observer()
        scheduled = 0
        for directory in self.directories:
            if not Path(directory).is_dir():
                logger.warning("Watch directory does not exist: %s", directory)
                continue
            observer.schedule(self, directory, recursive=True)
            scheduled += 1

        if not scheduled:
            logger.error("No existing directories to watch")
            return

        observer.start()
        self._observer = observer
        self._paused = False
        logger.debug("Listening to %s", ", ".join(self.directories))

    def stop(self) -> None:
        """Stop watching and drop any unflushed burst."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = self._empty_burst()

        observer = self._observer
        self._observer = None
        if observer is None:
            return

        try:
            observer.stop()
            observer.join(timeout=5.0)
        except Exception as e:
            logger.error("Error stopping observer: %s", e)

    def pause(self) -> None:
        self.stop()
        self._paused = True

    def unpause(self) -> None:
        self._paused = False
        self.start()

    def is_paused(self) -> bool:
        return self._paused

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    # Event handling (observer thread)

    def _is_ignored(self, path: str) -> bool:
        relative = path
        for directory in self.directories:
            prefix = directory.rstrip(os.sep) + os.sep
            if path.startswith(prefix):
                relative = path[len(prefix):]
                break
        return any(fnmatch.fnmatchcase(relative, p) for p in self.ignore_patterns)

    def _record(self, kind: str, path) -> None:
        path = os.fsdecode(path)
        if not path or self._is_ignored(path):
            return
        paths = self._pending[kind]
        if path not in paths:
            paths.append(path)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        with self._lock:
            if event.event_type == EVENT_TYPE_MODIFIED:
                self._record("modified", event.src_path)
            elif event.event_type == EVENT_TYPE_CREATED:
                self._record("added", event.src_path)
            elif event.event_type == EVENT_TYPE_DELETED:
                self._record("removed", event.src_path)
            elif event.event_type == EVENT_TYPE_MOVED:
                self._record("removed", event.src_path)
                self._record("added", event.dest_path)
            else:
                return

            if not any(self._pending.values()):
                return

            if self.wait_for_delay <= 0:
                flush_now = True
            else:
                flush_now = False
                if self._timer is not None:
                    self._timer.cancel()
                self._timer = threading.Timer(self.wait_for_delay, self.flush)
                self._timer.daemon = True
                self._timer.start()

        if flush_now:
            self.flush()

    def flush(self) -> None:
        """Hand the pending burst to the callback."""
        with self._lock:
            burst = self._pending
            self._pending = self._empty_burst()
            self._timer = None

        if not any(burst.values()):
            return

        try:
            self.callback(burst["modified"], burst["added"], burst["removed"])
        except Exception:
            logger.error("Error in change callback", exc_info=True)
