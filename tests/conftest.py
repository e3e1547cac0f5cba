"""Test fixtures for task-guard tests."""

import json
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import MagicMock

from task_guard.models import GuardOptions
from task_guard.plugin import Plugin
from task_guard.registry import PluginRegistry, ScopeResolver
from task_guard.coordinator import Coordinator
from task_guard.interactor import NullInteractor


class RecordingPlugin(Plugin):
    """Plugin that records every hook call."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    def start(self):
        self.calls.append(("start",))

    def stop(self):
        self.calls.append(("stop",))

    def reload(self):
        self.calls.append(("reload",))

    def run_all(self):
        self.calls.append(("run_all",))

    def run_on_changes(self, paths):
        self.calls.append(("run_on_changes", list(paths)))


class BrokenPlugin(Plugin):
    """Plugin whose constructor rejects its options."""

    def __init__(self, **kwargs):
        raise ValueError("bad option")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def registry():
    """Create an empty plugin registry."""
    return PluginRegistry()


@pytest.fixture
def resolver(registry):
    return ScopeResolver(registry)


@pytest.fixture
def ruby_plugin():
    """Plugin watching Ruby files."""
    return RecordingPlugin(name="plugina", watchers=["*.rb"])


@pytest.fixture
def css_plugin():
    """Plugin watching stylesheets."""
    return RecordingPlugin(name="pluginb", watchers=["*.css"])


@pytest.fixture
def populated_registry(registry, ruby_plugin, css_plugin):
    """Registry with a backend and a frontend group."""
    registry.add_plugin(ruby_plugin, group="backend")
    registry.add_plugin(css_plugin, group="frontend")
    return registry


@pytest.fixture
def guardfile(temp_dir):
    """Write a Guardfile with two groups and return its path."""
    path = temp_dir / "Guardfile.json"
    path.write_text(json.dumps({
        "version": "1.0",
        "groups": [
            {
                "name": "backend",
                "plugins": [
                    {"type": "shell", "name": "specs", "watch": ["*.rb"],
                     "options": {"command": "true"}}
                ]
            },
            {
                "name": "frontend",
                "plugins": [
                    {"type": "shell", "name": "styles", "watch": ["*.css"],
                     "options": {"command": "true"}}
                ]
            }
        ]
    }))
    return path


@pytest.fixture
def mock_listener():
    """Listener double created by the coordinator's listener factory."""
    return MagicMock()


@pytest.fixture
def coordinator(temp_dir, guardfile, mock_listener):
    """Set-up coordinator watching temp_dir, with a mocked listener."""
    options = GuardOptions(
        watchdir=[str(temp_dir)],
        guardfile=str(guardfile),
        no_interactions=True,
        notify=False
    )
    coordinator = Coordinator(
        options,
        listener_factory=lambda *args, **kwargs: mock_listener,
        interactor=NullInteractor()
    )
    coordinator.signal_router.install = MagicMock(return_value=[])
    coordinator.signal_router.restore = MagicMock()
    coordinator.setup()
    return coordinator
