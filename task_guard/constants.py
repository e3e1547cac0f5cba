"""
Environment variable names and default values for task-guard.

All environment variables are optional and have sensible defaults.
"""

import os
from pathlib import Path

# Guardfile lookup
TASK_GUARD_GUARDFILE = os.getenv("TASK_GUARD_GUARDFILE", "")
GUARDFILE_NAME = "Guardfile.json"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "task-guard"
DEFAULT_USER_GUARDFILE = DEFAULT_CONFIG_DIR / GUARDFILE_NAME

# Notifications ("false" always wins over the notify option)
TASK_GUARD_NOTIFY = os.getenv("TASK_GUARD_NOTIFY", "")

# Listener tuning
TASK_GUARD_DEBOUNCE_MS = int(os.getenv("TASK_GUARD_DEBOUNCE_MS", "100"))

# Logging
TASK_GUARD_LOG_LEVEL = os.getenv("TASK_GUARD_LOG_LEVEL", "INFO")

# Groups and scope
DEFAULT_GROUP = "default"

# Dispatch loop poll interval while idle (seconds)
DISPATCH_POLL_INTERVAL = 0.5
