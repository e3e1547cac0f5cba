"""
Guardfile evaluation.

The Guardfile is a JSON document declaring groups and plugins. Evaluating
it populates the plugin registry; re-evaluating stops every plugin, resets
the registry, loads the file again and starts the new plugins.
"""

import importlib
import json
import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Type

from pydantic import ValidationError

from task_guard import constants
from task_guard.commands import CommandRunner
from task_guard.errors import GuardfileError, PluginLoadError
from task_guard.models import GuardfileDefinition, PluginDefinition
from task_guard.plugin import Plugin, ShellPlugin
from task_guard.registry import PluginRegistry


logger = logging.getLogger(__name__)

BUILTIN_PLUGINS: Dict[str, Type[Plugin]] = {
    "shell": ShellPlugin,
}

STARTER_GUARDFILE = {
    "version": "1.0",
    "notification": True,
    "ignore": ["build/*", "dist/*"],
    "groups": [
        {
            "name": "tests",
            "plugins": [
                {
                    "type": "shell",
                    "name": "pytest",
                    "watch": ["*.py"],
                    "options": {"command": "pytest -q"}
                }
            ]
        }
    ]
}


def load_plugin_class(plugin_type: str) -> Type[Plugin]:
    """
    Resolve a plugin type to a Plugin subclass.

    Args:
        plugin_type: A built-in name ("shell") or "package.module:ClassName"

    Raises:
        PluginLoadError: If the type cannot be imported or is not a Plugin
    """
    if plugin_type in BUILTIN_PLUGINS:
        return BUILTIN_PLUGINS[plugin_type]

    module_name, _, class_name = plugin_type.partition(":")
    if not class_name:
        raise PluginLoadError(
            f"Unknown plugin type {plugin_type!r} (expected a built-in name or 'module:Class')"
        )

    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        raise PluginLoadError(f"Could not import plugin module {module_name!r}: {e}") from e

    plugin_class = getattr(module, class_name, None)
    if not isinstance(plugin_class, type) or not issubclass(plugin_class, Plugin):
        raise PluginLoadError(f"{plugin_type!r} is not a Plugin subclass")
    return plugin_class


def write_starter(path: Path) -> Path:
    """Write a starter Guardfile; refuses to overwrite an existing one."""
    path = Path(path)
    if path.exists():
        raise GuardfileError(f"Guardfile already exists: {path}")
    path.write_text(json.dumps(STARTER_GUARDFILE, indent=2) + "\n")
    return path


class GuardfileEvaluator:
    """Locates, parses and applies the Guardfile."""

    def __init__(
        self,
        registry: PluginRegistry,
        guardfile: Optional[str] = None,
        command_runner: Optional[CommandRunner] = None,
        on_load: Optional[Callable[[GuardfileDefinition], None]] = None
    ):
        """
        Initialize evaluator.

        Args:
            registry: Registry to populate
            guardfile: Explicit Guardfile path (overrides lookup)
            command_runner: Command wrapper handed to every plugin
            on_load: Called with the parsed definition after each evaluation
        """
        self.registry = registry
        self.guardfile = guardfile
        self.command_runner = command_runner or CommandRunner()
        self.on_load = on_load
        self._guardfile_path: Optional[Path] = None

    @property
    def guardfile_path(self) -> Optional[str]:
        return str(self._guardfile_path) if self._guardfile_path else None

    def find_guardfile(self) -> Path:
        """
        Find the Guardfile to load.

        Lookup order: explicit path, TASK_GUARD_GUARDFILE, ./Guardfile.json,
        ~/.config/task-guard/Guardfile.json.

        Raises:
            GuardfileError: If no Guardfile exists
        """
        explicit = self.guardfile or constants.TASK_GUARD_GUARDFILE
        if explicit:
            path = Path(explicit).expanduser().resolve()
            if not path.is_file():
                raise GuardfileError(f"No Guardfile exists at {path}")
            return path

        for candidate in (Path.cwd() / constants.GUARDFILE_NAME, constants.DEFAULT_USER_GUARDFILE):
            if candidate.is_file():
                return candidate.resolve()

        raise GuardfileError(
            f"No {constants.GUARDFILE_NAME} found in the current directory or {constants.DEFAULT_CONFIG_DIR}"
        )

    def read_definition(self, path: Path) -> GuardfileDefinition:
        try:
            data = json.loads(path.read_text())
        except OSError as e:
            raise GuardfileError(f"Could not read Guardfile {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise GuardfileError(f"Invalid JSON in Guardfile {path}: {e}") from e

        try:
            return GuardfileDefinition.model_validate(data)
        except ValidationError as e:
            raise GuardfileError(f"Invalid Guardfile {path}: {e}") from e

    def _build_plugin(self, definition: PluginDefinition) -> Plugin:
        plugin_class = load_plugin_class(definition.type)
        try:
            return plugin_class(
                name=definition.name,
                watchers=definition.watch,
                command_runner=self.command_runner,
                **definition.options
            )
        except Exception as e:
            raise PluginLoadError(
                f"Could not create plugin {definition.type!r}: {type(e).__name__}: {e}"
            ) from e

    def evaluate(self) -> GuardfileDefinition:
        """
        Load the Guardfile and register its groups and plugins.

        Returns:
            The parsed Guardfile

        Raises:
            GuardfileError: If the Guardfile is missing or invalid
        """
        path = self.find_guardfile()
        definition = self.read_definition(path)
        self._guardfile_path = path

        for plugin_definition in definition.plugins:
            self.registry.add_plugin(self._build_plugin(plugin_definition))

        for group_definition in definition.groups:
            group = self.registry.add_group(group_definition.name)
            for plugin_definition in group_definition.plugins:
                self.registry.add_plugin(self._build_plugin(plugin_definition), group=group)

        logger.debug("Evaluated %s (%d plugins)", path, definition.plugin_count())
        if not self.registry.plugins():
            logger.error("No plugins found in Guardfile, please add at least one.")

        if self.on_load is not None:
            self.on_load(definition)
        return definition

    def reevaluate(self, runner, notifier=None) -> GuardfileDefinition:
        """
        Reload the Guardfile from scratch.

        Stops all current plugins, resets the registry, evaluates again and
        starts the new plugins.
        """
        runner.run("stop")
        self.registry.reset()
        definition = self.evaluate()
        runner.run("start")

        logger.info("Guardfile has been re-evaluated.")
        if notifier is not None:
            notifier.notify("Guardfile has been re-evaluated.", title="Guard re-evaluated")
        return definition
