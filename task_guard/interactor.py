"""
Interactive shell.

Reads commands from stdin on a daemon thread. Every command is turned into
a control action on the change queue; the shell never runs plugin work
itself.
"""

import logging
import shlex
import sys
import threading
from typing import Callable, List, Optional, TextIO

from task_guard.change_queue import ActionKind, ChangeQueue, ControlAction
from task_guard.errors import ScopeError
from task_guard.registry import ScopeResolver


logger = logging.getLogger(__name__)

BACKGROUND_POLL_INTERVAL = 0.05

HELP_TEXT = """Commands:
  all [names]     Run all plugins (or the named groups/plugins)
  reload [names]  Reload plugins; with no names, re-evaluate the Guardfile
  pause           Toggle file change listening
  scope [names]   Set the default scope (no names clears it)
  show            Show groups and plugins
  exit            Stop task-guard"""


class NullInteractor:
    """Interactor used with --no-interactions."""

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def background(self) -> None:
        pass

    def foreground(self) -> None:
        pass

    def handle_interrupt(self) -> None:
        raise KeyboardInterrupt


class Interactor(NullInteractor):
    """Line-based command shell."""

    def __init__(
        self,
        queue: ChangeQueue,
        resolver: ScopeResolver,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        prompt: str = "task-guard> "
    ):
        self.queue = queue
        self.resolver = resolver
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.prompt = prompt

        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        # Plain flag: set from signal context, so no lock may be taken
        self._in_background = False

    # Thread lifecycle

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._read_loop, name="Interactor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    def background(self) -> None:
        """Stop prompting while the control thread handles queued work."""
        self._in_background = True

    def foreground(self) -> None:
        self._in_background = False

    def in_background(self) -> bool:
        return self._in_background

    def _read_loop(self) -> None:
        while not self._stopped.is_set():
            if self._in_background:
                self._stopped.wait(BACKGROUND_POLL_INTERVAL)
                continue

            self.stdout.write(self.prompt)
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                # EOF behaves like exit
                self.queue.push(ControlAction(ActionKind.STOP))
                break

            try:
                self.execute(line)
            except Exception:
                logger.error("Error executing command %r", line.strip(), exc_info=True)

    # Commands

    def execute(self, line: str) -> Optional[ControlAction]:
        """
        Turn a command line into a queued control action.

        Returns:
            The queued action, or None if nothing was queued
        """
        words = shlex.split(line)
        if not words:
            return None

        command, names = words[0].lower(), words[1:]
        handler: Optional[Callable[[List[str]], Optional[ControlAction]]] = {
            "all": self._cmd_all,
            "reload": self._cmd_reload,
            "pause": self._cmd_pause,
            "scope": self._cmd_scope,
            "show": self._cmd_show,
            "help": self._cmd_help,
            "exit": self._cmd_exit,
            "quit": self._cmd_exit,
        }.get(command)

        if handler is None:
            self._print(f"Unknown command: {command} (type 'help')")
            return None

        action = handler(names)
        if action is not None:
            self.queue.push(action)
        return action

    def _print(self, text: str) -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def _scoped_action(self, kind: ActionKind, names: List[str]) -> Optional[ControlAction]:
        try:
            scope = self.resolver.from_names(names)
        except ScopeError as e:
            self._print(f"❌ {e}")
            return None
        return ControlAction(kind, scope)

    def _cmd_all(self, names: List[str]) -> Optional[ControlAction]:
        return self._scoped_action(ActionKind.RUN_ALL, names)

    def _cmd_reload(self, names: List[str]) -> Optional[ControlAction]:
        return self._scoped_action(ActionKind.RELOAD, names)

    def _cmd_pause(self, names: List[str]) -> Optional[ControlAction]:
        return ControlAction(ActionKind.PAUSE, None)

    def _cmd_scope(self, names: List[str]) -> Optional[ControlAction]:
        try:
            scope = self.resolver.from_names(names)
        except ScopeError as e:
            self._print(f"❌ {e}")
            return None
        self.resolver.registry.set_scope(scope)
        self._print(f"Scope set to: {scope.describe()}")
        return None

    def _cmd_show(self, names: List[str]) -> Optional[ControlAction]:
        registry = self.resolver.registry
        for group in registry.groups:
            self._print(f"📁 {group.name}")
            for plugin in registry.plugins(group=group):
                patterns = ", ".join(repr(w) for w in plugin.watchers) or "-"
                self._print(f"   {plugin.name}: {patterns}")
        return None

    def _cmd_help(self, names: List[str]) -> Optional[ControlAction]:
        self._print(HELP_TEXT)
        return None

    def _cmd_exit(self, names: List[str]) -> Optional[ControlAction]:
        self.stop()
        return ControlAction(ActionKind.STOP)
