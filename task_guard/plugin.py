"""
Plugins, groups and watch patterns.

A plugin is a black box exposing lifecycle hooks. Each plugin carries a
list of Watcher rules that decide which changed paths it cares about.
"""

import fnmatch
import logging
import re
import shlex
from typing import Any, Callable, Iterable, List, Optional, Pattern, Union

from task_guard.commands import CommandRunner


logger = logging.getLogger(__name__)


class Group:
    """A named collection of plugins, used for scoping."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = str(name)

    def __eq__(self, other):
        return isinstance(other, Group) and other.name == self.name

    def __hash__(self):
        return hash(("group", self.name))

    def __repr__(self):
        return f"Group({self.name!r})"


class Watcher:
    """
    A single watch rule.

    The pattern is either a glob (matched against the whole relative path)
    or a compiled regular expression (searched). An optional action maps a
    matched path to the path(s) handed to the plugin.
    """

    def __init__(
        self,
        pattern: Union[str, Pattern],
        action: Optional[Callable[..., Any]] = None
    ):
        self.pattern = pattern
        self.action = action

    def __repr__(self):
        pattern = self.pattern.pattern if hasattr(self.pattern, "pattern") else self.pattern
        return f"Watcher({pattern!r})"

    def match(self, path: str):
        """
        Match a path against this rule.

        Returns:
            A regex match object, True for a glob match, or None
        """
        if isinstance(self.pattern, str):
            if fnmatch.fnmatchcase(path, self.pattern):
                return True
            return None
        return self.pattern.search(path)

    def resolve(self, path: str) -> List[str]:
        """Get the paths a matching path expands to after the action runs."""
        match = self.match(path)
        if not match:
            return []
        if self.action is None:
            return [path]

        result = self.action(match) if match is not True else self.action(path)
        if not result:
            return []
        if isinstance(result, str):
            return [result]
        return [str(p) for p in result]

    @staticmethod
    def match_files(plugin: "Plugin", paths: Iterable[str]) -> List[str]:
        """
        Get the paths matched by any of the plugin's watchers.

        Args:
            plugin: Plugin whose watchers are tested
            paths: Relative paths to test

        Returns:
            Matched (and action-mapped) paths, ordered and without duplicates
        """
        matched: List[str] = []
        for path in paths:
            for watcher in plugin.watchers:
                for resolved in watcher.resolve(path):
                    if resolved not in matched:
                        matched.append(resolved)
        return matched

    @staticmethod
    def match_any(plugin: "Plugin", paths: Iterable[str]) -> bool:
        """Check whether any path matches any of the plugin's watchers."""
        for path in paths:
            for watcher in plugin.watchers:
                if watcher.match(path):
                    return True
        return False

    @staticmethod
    def match_guardfile(paths: Iterable[str], guardfile_paths: Iterable[str]) -> bool:
        """Check whether any path is the Guardfile.

        Paths are compared literally, so glob characters in a Guardfile
        location match only themselves.
        """
        guardfile_paths = set(guardfile_paths)
        return any(path in guardfile_paths for path in paths)


def build_watchers(patterns: Iterable[Union[str, Pattern, Watcher]]) -> List[Watcher]:
    """Turn a list of patterns into Watcher rules.

    Strings prefixed with ``re:`` are compiled as regular expressions.
    """
    watchers = []
    for pattern in patterns:
        if isinstance(pattern, Watcher):
            watchers.append(pattern)
        elif isinstance(pattern, str) and pattern.startswith("re:"):
            watchers.append(Watcher(re.compile(pattern[3:])))
        else:
            watchers.append(Watcher(pattern))
    return watchers


class Plugin:
    """
    Base class for task plugins.

    Subclasses override the hooks they need. The typed change hooks
    (additions, modifications, removals) fall back to run_on_changes.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        group: Optional[Group] = None,
        watchers: Optional[Iterable[Union[str, Pattern, Watcher]]] = None,
        command_runner: Optional[CommandRunner] = None,
        **options: Any
    ):
        self.name = name or type(self).__name__.lower()
        self.group = group
        self.watchers = build_watchers(watchers or [])
        self.command_runner = command_runner or CommandRunner()
        self.options = options

    def __repr__(self):
        group = self.group.name if self.group else None
        return f"<{type(self).__name__} name={self.name!r} group={group!r}>"

    def title(self) -> str:
        return self.name.capitalize()

    # Lifecycle hooks

    def start(self):
        pass

    def stop(self):
        pass

    def reload(self):
        pass

    def run_all(self):
        pass

    # Change hooks

    def run_on_changes(self, paths: List[str]):
        pass

    def run_on_additions(self, paths: List[str]):
        return self.run_on_changes(paths)

    def run_on_modifications(self, paths: List[str]):
        return self.run_on_changes(paths)

    def run_on_removals(self, paths: List[str]):
        return self.run_on_changes(paths)


class ShellPlugin(Plugin):
    """
    Runs a shell command when watched files change.

    Options:
        command: Command to run; ``{paths}`` is replaced with the
            space-separated changed paths
        all_command: Command for run_all (defaults to command with no paths)
        run_at_start: Run all once when the plugin starts
    """

    def __init__(self, name: Optional[str] = None, **kwargs: Any):
        super().__init__(name=name or "shell", **kwargs)
        self.command = self.options.get("command", "")
        self.all_command = self.options.get("all_command")
        self.run_at_start = bool(self.options.get("run_at_start", False))

    def _execute(self, command: str, paths: List[str]) -> bool:
        if not command:
            logger.warning("Plugin %s has no command configured", self.name)
            return True
        command = command.replace("{paths}", " ".join(shlex.quote(p) for p in paths))
        if not self.command_runner.run(command):
            logger.error("%s: command failed: %s", self.title(), command)
            return False
        return True

    def start(self):
        if self.run_at_start:
            self.run_all()

    def run_all(self):
        return self._execute(self.all_command or self.command, [])

    def run_on_changes(self, paths: List[str]):
        return self._execute(self.command, paths)
