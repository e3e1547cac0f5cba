"""
Coordinator for a task-guard session.

Owns the pause state, the plugin registry and the change queue, wires the
listener, signal router, interactor and runner together, and exposes the
session operations: start, stop, pause, reload and run_all.

Pause state is only changed from the control thread (the dispatch loop);
every other thread talks to the coordinator through the change queue.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

from task_guard.change_queue import ChangeBatch, ChangeQueue, PauseMode
from task_guard.commands import CommandRunner
from task_guard.dispatch import DispatchLoop
from task_guard.errors import GuardError, InvalidPauseModeError
from task_guard.guardfile import GuardfileEvaluator
from task_guard.interactor import Interactor, NullInteractor
from task_guard.listener import ChangeListener
from task_guard.models import GuardfileDefinition, GuardOptions
from task_guard.notifier import Notifier
from task_guard.plugin import Watcher
from task_guard.registry import PluginRegistry, Scope, ScopeResolver
from task_guard.relevance import guardfile_patterns, is_relevant, relative_paths
from task_guard.runner import Runner
from task_guard.signals import SignalRouter


logger = logging.getLogger(__name__)


class PauseState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"


class Coordinator:
    """
    A task-guard session.

    Usage:
        coordinator = Coordinator(GuardOptions(watchdir=["src"]))
        coordinator.start()  # blocks until stopped
    """

    def __init__(
        self,
        options: Optional[GuardOptions] = None,
        listener_factory: Callable[..., ChangeListener] = ChangeListener,
        interactor: Optional[NullInteractor] = None
    ):
        """
        Initialize coordinator.

        Args:
            options: Session options (defaults used if None)
            listener_factory: Builds the listener from (watchdirs, callback, **tuning)
            interactor: Interactive shell (chosen from options if None)
        """
        self.options = options or GuardOptions()
        self.watchdirs = self.options.watchdirs()
        self.pause_state = PauseState.RUNNING

        self.registry = PluginRegistry()
        self.resolver = ScopeResolver(self.registry)
        self.notifier = Notifier()
        self.command_runner = CommandRunner(debug=self.options.debug)
        self.runner = Runner(self.registry, self.notifier, clear=self.options.clear)
        self.evaluator = GuardfileEvaluator(
            self.registry,
            guardfile=self.options.guardfile,
            command_runner=self.command_runner,
            on_load=self._apply_guardfile
        )

        self.interactor = interactor
        self.queue = ChangeQueue(on_push=self._on_queue_push)
        self.signal_router = SignalRouter(self.queue, interrupt_handler=self._handle_interrupt)
        self.dispatch_loop = DispatchLoop(self.queue, self, after_cycle=self._after_cycle)

        self.listener_factory = listener_factory
        self.listener: Optional[ChangeListener] = None

        self.running = False
        self._setup_done = False
        self._stopped = False
        self._config_file_patterns: List[str] = []

    # Setup

    def setup(self) -> "Coordinator":
        """
        Prepare the session: listener, signal traps, Guardfile, notifier
        and interactor.

        Raises:
            GuardfileError: If the Guardfile cannot be loaded
        """
        self._setup_listener()
        self.signal_router.install()
        try:
            self._load_guardfile()
        except GuardError:
            self.signal_router.restore()
            raise
        self._setup_done = True
        return self

    def _setup_listener(self) -> None:
        self.listener = self.listener_factory(
            self.watchdirs,
            self._listener_callback,
            **self.options.listener_options()
        )

    def _load_guardfile(self) -> None:
        self.registry.reset()
        self.evaluator.evaluate()
        self._setup_interactor()

    def _apply_guardfile(self, definition: GuardfileDefinition) -> None:
        """Apply Guardfile settings after every (re-)evaluation."""
        if definition.ignore and self.listener is not None:
            self.listener.ignore(definition.ignore)
        if definition.clearing is not None:
            self.runner.clear = definition.clearing

        self.setup_scope(groups=definition.scope.groups, plugins=definition.scope.plugins)
        self.setup_scope(groups=self.options.group, plugins=self.options.plugin)

        notify = self.options.notify and definition.notification is not False
        self.notifier.configure(notify)

        if self.evaluator.guardfile_path:
            self._config_file_patterns = guardfile_patterns(
                self.evaluator.guardfile_path, self.watchdirs
            )

    def _setup_interactor(self) -> None:
        if self.interactor is not None:
            return
        if self.options.no_interactions:
            self.interactor = NullInteractor()
        else:
            self.interactor = Interactor(self.queue, self.resolver)

    def setup_scope(
        self,
        groups: Optional[Sequence[str]] = None,
        plugins: Optional[Sequence[str]] = None
    ) -> Scope:
        """
        Set the current scope from name lists.

        Only non-empty dimensions replace the current ones.

        Raises:
            ScopeError: If a plugin name is unknown
        """
        resolved = self.resolver.resolve(groups, plugins)
        current = self.registry.scope
        scope = Scope(
            groups=resolved.groups or current.groups,
            plugins=resolved.plugins or current.plugins
        )
        self.registry.set_scope(scope)
        return scope

    # Producers (listener thread, signal handlers, shell thread)

    def _listener_callback(self, modified: List[str], added: List[str], removed: List[str]) -> None:
        batch = ChangeBatch(list(modified), list(added), list(removed))
        relative_paths(batch, self.watchdirs)
        if is_relevant(batch, self.runner.scoped_plugins(), self._config_file_patterns):
            self.queue.push(batch)
        else:
            logger.debug("Ignoring irrelevant changes: %s", batch.all_paths())

    def _on_queue_push(self) -> None:
        if self.interactor is not None:
            self.interactor.background()

    def _after_cycle(self) -> None:
        if self.interactor is not None and not self._stopped:
            self.interactor.foreground()

    def _handle_interrupt(self) -> None:
        if self.interactor is None:
            raise KeyboardInterrupt
        self.interactor.handle_interrupt()

    # Operations (control thread)

    def start(self) -> None:
        """Start all plugins and the listener, then process changes until stopped."""
        if not self._setup_done:
            self.setup()

        self.running = True
        logger.debug("Starting all plugins")
        self.runner.run("start")
        logger.info("Guard is now watching at '%s'", "', '".join(self.watchdirs))
        self.listener.start()
        self.interactor.start()

        try:
            self.dispatch_loop.run()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.stop()

    def stop(self) -> None:
        """Turn off notifications, stop all plugins and the listener."""
        if self._stopped:
            return
        self._stopped = True

        self.notifier.turn_off()
        logger.debug("Stopping all plugins")
        self.runner.run("stop")
        if self.listener is not None:
            self.listener.stop()
        if self.interactor is not None:
            self.interactor.stop()
        self.dispatch_loop.stop()
        self.signal_router.restore()

        self.running = False
        logger.info("Bye bye...")

    def pause(self, mode: Union[PauseMode, str, None] = None) -> None:
        """
        Pause or resume listening to file changes.

        Args:
            mode: paused, unpaused, or toggle/None to invert the current state

        Raises:
            InvalidPauseModeError: For any other mode
        """
        mode = self._pause_mode(mode)
        paused = self.pause_state == PauseState.PAUSED

        if mode == PauseMode.TOGGLE:
            pause = not paused
        else:
            pause = mode == PauseMode.PAUSED

        if pause == paused:
            return

        if pause:
            self.listener.pause()
            self.pause_state = PauseState.PAUSED
        else:
            self.listener.unpause()
            self.pause_state = PauseState.RUNNING

        logger.info(
            "File modification listening is now %s.",
            "paused" if pause else "unpaused"
        )

    @staticmethod
    def _pause_mode(mode) -> PauseMode:
        if mode is None:
            return PauseMode.TOGGLE
        if isinstance(mode, PauseMode):
            return mode
        try:
            return PauseMode(mode)
        except ValueError:
            raise InvalidPauseModeError(mode) from None

    def reload(self, scope: Optional[Scope] = None) -> None:
        """
        Reload plugins in scope.

        With an empty scope the Guardfile is re-evaluated instead.
        """
        scope = scope or Scope()
        self.runner.clear_screen()
        logger.info("Reload %s", scope.describe())

        if not scope.is_empty():
            self.runner.run("reload", scope)
            return

        try:
            self.evaluator.reevaluate(self.runner, self.notifier)
        except GuardError as e:
            logger.error("Could not re-evaluate Guardfile: %s", e)

    def run_all(self, scope: Optional[Scope] = None) -> None:
        scope = scope or Scope()
        self.runner.clear_screen()
        logger.info("Run %s", scope.describe())
        self.runner.run("run_all", scope)

    def process_changes(self, changes: ChangeBatch) -> None:
        """Forward a drained change batch, reloading first if the Guardfile changed."""
        if Watcher.match_guardfile(changes.modified, self._config_file_patterns):
            logger.info("Guardfile changed, re-evaluating")
            self.reload()

        self.runner.run_on_changes(*changes.as_tuple())
