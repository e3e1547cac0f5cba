"""
Runner dispatching lifecycle tasks and file changes to scoped plugins.

All calls happen on the control thread. A failing plugin is removed from
the registry so it cannot stop other plugins from running.
"""

import logging
import sys
from typing import Any, List, Optional

from task_guard.notifier import Notifier
from task_guard.plugin import Plugin, Watcher
from task_guard.registry import PluginRegistry, Scope


logger = logging.getLogger(__name__)

LIFECYCLE_TASKS = ("start", "stop", "reload", "run_all")

# (plugin hook, change type) in dispatch order
CHANGE_TASKS = (
    ("run_on_modifications", "modified"),
    ("run_on_additions", "added"),
    ("run_on_removals", "removed"),
)


class Runner:
    """
    Runs plugin hooks for a scope.

    Scope precedence: explicit plugins, explicit groups, current scope
    plugins, current scope groups, then every group.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        notifier: Optional[Notifier] = None,
        clear: bool = False
    ):
        """
        Initialize runner.

        Args:
            registry: Registry holding groups, plugins and the current scope
            notifier: Used to report plugin failures
            clear: Clear the terminal before each plugin runs on changes
        """
        self.registry = registry
        self.notifier = notifier or Notifier()
        self.clear = clear

    def clear_screen(self) -> None:
        """Clear the terminal when the clear option is on and stdout is a tty."""
        if self.clear and sys.stdout.isatty():
            sys.stdout.write("\033[2J\033[H")
            sys.stdout.flush()

    def scoped_plugins(self, scope: Optional[Scope] = None) -> List[Plugin]:
        """Get the plugins selected by a scope (empty scope = unrestricted)."""
        scope = scope or Scope()
        current = self.registry.scope

        if scope.plugins:
            return list(scope.plugins)
        if scope.groups:
            return self._plugins_of(scope.groups)
        if current.plugins:
            return list(current.plugins)
        if current.groups:
            return self._plugins_of(current.groups)
        return self._plugins_of(self.registry.groups)

    def _plugins_of(self, groups) -> List[Plugin]:
        plugins: List[Plugin] = []
        for group in groups:
            plugins.extend(self.registry.plugins(group=group))
        return plugins

    def run(self, task: str, scope: Optional[Scope] = None) -> None:
        """
        Run a lifecycle task on every scoped plugin.

        Args:
            task: One of start, stop, reload, run_all
            scope: Optional scope restriction

        Raises:
            ValueError: If task is not a lifecycle task
        """
        if task not in LIFECYCLE_TASKS:
            raise ValueError(f"Unknown lifecycle task: {task!r}")

        for plugin in self.scoped_plugins(scope):
            self._supervise(plugin, task)

    def run_on_changes(
        self,
        modified: List[str],
        added: List[str],
        removed: List[str]
    ) -> None:
        """Dispatch changed paths to the plugins watching them."""
        changes = {"modified": modified, "added": added, "removed": removed}

        for plugin in self.scoped_plugins():
            for task, change_type in CHANGE_TASKS:
                paths = changes[change_type]
                if not paths:
                    continue

                matched = Watcher.match_files(plugin, paths)
                if not matched:
                    continue

                self.clear_screen()
                self._supervise(plugin, task, matched)
                if plugin not in self.registry.plugins():
                    break

    def _supervise(self, plugin: Plugin, task: str, *args: Any) -> Any:
        """
        Run a plugin hook, isolating failures.

        Returns:
            The hook's return value, or the exception it raised
        """
        logger.debug("%s: %s begin", plugin.title(), task)
        try:
            result = getattr(plugin, task)(*args)
        except Exception as e:
            logger.error(
                "%s failed to achieve its <%s>, exception was: %s: %s",
                plugin.title(), task, type(e).__name__, e,
                exc_info=True
            )
            self.registry.remove_plugin(plugin)
            logger.info("%s has just been fired", plugin.title())
            self.notifier.notify(
                f"{plugin.title()} has failed and was removed",
                title=f"{plugin.title()} failed",
                image="failed"
            )
            return e

        logger.debug("%s: %s end", plugin.title(), task)
        return result
