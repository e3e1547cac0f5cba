"""
Tests for the task-guard command line.

Covers:
- Argument parsing into GuardOptions
- show / list / init commands
- start error handling
"""

import json
from unittest.mock import patch

from task_guard.cli import build_parser, main, options_from_args


class TestParser:
    """Tests for argument parsing."""

    def test_start_defaults(self):
        """Test start options default sensibly."""
        args = build_parser().parse_args(["start"])
        options = options_from_args(args)

        assert options.notify is True
        assert options.clear is False
        assert options.group == []
        assert options.listener_options() == {}

    def test_start_options(self):
        """Test repeatable and listener options are collected."""
        args = build_parser().parse_args([
            "-G", "custom.json", "start",
            "-c", "-n", "-g", "backend", "-g", "frontend", "-P", "specs",
            "-w", "src", "-i", "-l", "0.5", "-p", "-y", "0.2"
        ])
        options = options_from_args(args)

        assert options.guardfile == "custom.json"
        assert options.clear is True
        assert options.notify is False
        assert options.group == ["backend", "frontend"]
        assert options.plugin == ["specs"]
        assert options.watchdir == ["src"]
        assert options.no_interactions is True
        assert options.listener_options() == {
            "latency": 0.5,
            "force_polling": True,
            "wait_for_delay": 0.2
        }

    def test_no_command_prints_help(self, capsys):
        """Test running without a command prints help."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out


class TestShowCommand:
    """Tests for the show command."""

    def test_show_groups_and_plugins(self, guardfile, capsys):
        """Test groups and plugins from the Guardfile are listed."""
        assert main(["-G", str(guardfile), "show"]) == 0

        output = capsys.readouterr().out
        assert "📁 backend (1 plugins)" in output
        assert "specs [ShellPlugin]" in output
        assert "styles" in output

    def test_show_missing_guardfile(self, temp_dir, capsys):
        """Test a missing Guardfile is reported with exit code 1."""
        assert main(["-G", str(temp_dir / "missing.json"), "show"]) == 1
        assert "❌" in capsys.readouterr().err


class TestListCommand:
    """Tests for the list command."""

    def test_lists_builtin_plugins(self, capsys):
        """Test built-in plugin types are listed."""
        assert main(["list"]) == 0
        assert "shell" in capsys.readouterr().out


class TestInitCommand:
    """Tests for the init command."""

    def test_writes_guardfile(self, temp_dir, monkeypatch, capsys):
        """Test init writes ./Guardfile.json."""
        monkeypatch.chdir(temp_dir)

        assert main(["init"]) == 0

        data = json.loads((temp_dir / "Guardfile.json").read_text())
        assert data["groups"][0]["plugins"][0]["type"] == "shell"
        assert "✅" in capsys.readouterr().out

    def test_existing_guardfile(self, guardfile, capsys):
        """Test init refuses to overwrite."""
        assert main(["-G", str(guardfile), "init"]) == 1
        assert "already exists" in capsys.readouterr().err


class TestStartCommand:
    """Tests for the start command."""

    def test_setup_error(self, temp_dir, capsys):
        """Test a Guardfile error during setup exits with 1."""
        with patch("task_guard.cli.configure_logging"):
            code = main(["-G", str(temp_dir / "missing.json"), "start", "-i", "-w", str(temp_dir)])

        assert code == 1
        assert "No Guardfile exists" in capsys.readouterr().err

    def test_start_runs_coordinator(self, guardfile):
        """Test start sets up and runs the coordinator."""
        with patch("task_guard.cli.configure_logging"), \
             patch("task_guard.cli.Coordinator") as coordinator_class:
            code = main(["-G", str(guardfile), "start", "-i"])

        assert code == 0
        coordinator = coordinator_class.return_value
        coordinator.setup.assert_called_once()
        coordinator.start.assert_called_once()
        options = coordinator_class.call_args.args[0]
        assert options.guardfile == str(guardfile)
        assert options.no_interactions is True
