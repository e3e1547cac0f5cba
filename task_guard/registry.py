"""
Plugin registry and scope resolution.

The registry owns every registered group and plugin. A Scope is a
transient, immutable selection of groups/plugins; an empty dimension means
"no restriction" for every consumer.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from task_guard.constants import DEFAULT_GROUP
from task_guard.errors import ScopeError
from task_guard.plugin import Group, Plugin


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scope:
    """Resolved subset of groups and plugins targeted by an operation."""

    groups: tuple = ()
    plugins: tuple = ()

    def is_empty(self) -> bool:
        return not self.groups and not self.plugins

    def describe(self) -> str:
        names = [g.name for g in self.groups] + [p.name for p in self.plugins]
        return ", ".join(names) if names else "all"


class PluginRegistry:
    """Registered groups and plugins, plus the current (shell-set) scope."""

    def __init__(self):
        self._groups: List[Group] = []
        self._plugins: List[Plugin] = []
        self._scope = Scope()
        self.reset()

    def reset(self) -> None:
        """Drop every plugin and group and clear the current scope."""
        self._groups = [Group(DEFAULT_GROUP)]
        self._plugins = []
        self._scope = Scope()

    # Groups

    @property
    def groups(self) -> List[Group]:
        return list(self._groups)

    def find_group(self, name: str) -> Optional[Group]:
        for group in self._groups:
            if group.name == str(name):
                return group
        return None

    def add_group(self, name: Union[str, Group]) -> Group:
        """Get a group by name, creating it if it is not registered yet."""
        name = name.name if isinstance(name, Group) else str(name)
        group = self.find_group(name)
        if group is None:
            group = Group(name)
            self._groups.append(group)
            logger.debug("Registered group %s", name)
        return group

    # Plugins

    def plugins(self, group: Optional[Union[str, Group]] = None) -> List[Plugin]:
        """Get registered plugins, optionally only those of one group."""
        if group is None:
            return list(self._plugins)
        name = group.name if isinstance(group, Group) else str(group)
        return [p for p in self._plugins if p.group is not None and p.group.name == name]

    def find_plugin(self, name: str) -> Optional[Plugin]:
        for plugin in self._plugins:
            if plugin.name == str(name):
                return plugin
        return None

    def plugin(self, name: str) -> Plugin:
        """
        Get a registered plugin by name.

        Raises:
            ScopeError: If no plugin has that name
        """
        plugin = self.find_plugin(name)
        if plugin is None:
            raise ScopeError(f"No plugin named {name!r} is registered")
        return plugin

    def add_plugin(
        self,
        plugin: Plugin,
        group: Optional[Union[str, Group]] = None
    ) -> Plugin:
        """
        Register a plugin in a group.

        The group is taken from the argument, then the plugin's own group,
        then the default group.
        """
        if group is None:
            group = plugin.group or DEFAULT_GROUP
        plugin.group = self.add_group(group)
        self._plugins.append(plugin)
        logger.debug("Registered plugin %s in group %s", plugin.name, plugin.group.name)
        return plugin

    def remove_plugin(self, plugin: Plugin) -> bool:
        if plugin in self._plugins:
            self._plugins.remove(plugin)
            return True
        return False

    # Current scope

    @property
    def scope(self) -> Scope:
        return self._scope

    def set_scope(self, scope: Scope) -> None:
        """Replace the current scope (never mutated in place)."""
        self._scope = scope


class ScopeResolver:
    """Maps group/plugin name lists to registered entities."""

    def __init__(self, registry: PluginRegistry):
        self.registry = registry

    def resolve(
        self,
        groups: Optional[Sequence[str]] = None,
        plugins: Optional[Sequence[str]] = None
    ) -> Scope:
        """
        Resolve name lists into a Scope.

        Group names are created on demand; plugin names must already be
        registered.

        Raises:
            ScopeError: If a plugin name is unknown
        """
        resolved_groups = tuple(self.registry.add_group(name) for name in groups or [])
        resolved_plugins = tuple(self.registry.plugin(name) for name in plugins or [])
        return Scope(groups=resolved_groups, plugins=resolved_plugins)

    def from_names(self, names: Iterable[str]) -> Scope:
        """
        Resolve a mixed list of names typed in the interactive shell.

        Each name is looked up as a group first, then as a plugin.

        Raises:
            ScopeError: If a name is neither a group nor a plugin
        """
        groups = []
        plugins = []
        for name in names:
            group = self.registry.find_group(name)
            if group is not None:
                groups.append(group)
                continue
            plugin = self.registry.find_plugin(name)
            if plugin is not None:
                plugins.append(plugin)
                continue
            raise ScopeError(f"Unknown group or plugin: {name!r}")
        return Scope(groups=tuple(groups), plugins=tuple(plugins))
