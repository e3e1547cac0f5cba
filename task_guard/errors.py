"""Exception types raised by task-guard."""


class GuardError(Exception):
    """Base class for all task-guard errors."""


class ScopeError(GuardError):
    """A scope request names a plugin (or group) that is not registered."""


class InvalidPauseModeError(GuardError, ValueError):
    """Pause was requested with a mode other than paused/unpaused/toggle."""

    def __init__(self, mode):
        super().__init__(f"invalid mode: {mode!r}")
        self.mode = mode


class UnknownActionError(GuardError):
    """A queued control action has no handler.

    Raised from the dispatch loop; this signals a logic bug in a producer,
    so it is never caught there.
    """


class GuardfileError(GuardError):
    """The Guardfile is missing, unreadable or invalid."""


class PluginLoadError(GuardfileError):
    """A plugin type named in the Guardfile cannot be loaded."""
