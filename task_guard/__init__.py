"""
Task Guard - run task plugins when watched files change.

Watches directories, filters change bursts down to the ones registered
plugins care about, and dispatches them on a single control thread.
"""

__version__ = "1.0.0"

from task_guard.errors import (
    GuardError,
    ScopeError,
    InvalidPauseModeError,
    UnknownActionError,
    GuardfileError,
    PluginLoadError,
)
from task_guard.models import GuardOptions, GuardfileDefinition
from task_guard.plugin import Group, Plugin, ShellPlugin, Watcher
from task_guard.registry import PluginRegistry, Scope, ScopeResolver
from task_guard.change_queue import (
    ActionKind,
    ChangeBatch,
    ChangeQueue,
    ControlAction,
    PauseMode,
)
from task_guard.runner import Runner
from task_guard.coordinator import Coordinator, PauseState

__all__ = [
    # Errors
    "GuardError",
    "ScopeError",
    "InvalidPauseModeError",
    "UnknownActionError",
    "GuardfileError",
    "PluginLoadError",
    # Models
    "GuardOptions",
    "GuardfileDefinition",
    # Plugins
    "Group",
    "Plugin",
    "ShellPlugin",
    "Watcher",
    "PluginRegistry",
    "Scope",
    "ScopeResolver",
    # Queue
    "ActionKind",
    "ChangeBatch",
    "ChangeQueue",
    "ControlAction",
    "PauseMode",
    # Components
    "Runner",
    "Coordinator",
    "PauseState",
]
