"""
Command execution wrapper.

Plugins run external commands through a CommandRunner instead of calling
subprocess directly, so debug mode can log every command before it runs.
"""

import logging
import shlex
import subprocess
from typing import List, Optional, Sequence, Union


logger = logging.getLogger(__name__)

Command = Union[str, Sequence[str]]


def _as_argv(command: Command, args: Sequence[str] = ()) -> List[str]:
    if isinstance(command, str):
        argv = shlex.split(command)
    else:
        argv = list(command)
    return argv + list(args)


class CommandRunner:
    """
    Runs shell commands on behalf of plugins.

    With debug enabled, each command is logged before execution.
    """

    def __init__(self, debug: bool = False, cwd: Optional[str] = None):
        self.debug = debug
        self.cwd = cwd

    def _log(self, argv: List[str]) -> None:
        if self.debug:
            logger.debug("Command execution: %s", " ".join(argv))

    def run(self, command: Command, *args: str) -> bool:
        """
        Run a command, inheriting stdout/stderr.

        Args:
            command: Command string or argv list
            *args: Extra arguments appended to the command

        Returns:
            True if the command exited with status 0
        """
        argv = _as_argv(command, args)
        self._log(argv)
        try:
            result = subprocess.run(argv, cwd=self.cwd)
        except OSError as e:
            logger.error("Failed to execute %s: %s", argv[0] if argv else command, e)
            return False
        return result.returncode == 0

    def capture(self, command: Command, *args: str) -> str:
        """
        Run a command and return its stdout.

        Raises:
            subprocess.CalledProcessError: If the command exits non-zero
        """
        argv = _as_argv(command, args)
        self._log(argv)
        result = subprocess.run(
            argv,
            cwd=self.cwd,
            check=True,
            capture_output=True,
            text=True
        )
        return result.stdout
