"""Tests for plugins and watch rules."""

import re
from unittest.mock import Mock

from task_guard.plugin import Group, Plugin, ShellPlugin, Watcher, build_watchers


class TestWatcher:
    """Tests for Watcher."""

    def test_glob_match(self):
        """Test glob patterns match across directories."""
        watcher = Watcher("*.rb")
        assert watcher.match("app/a.rb")
        assert not watcher.match("app/a.css")

    def test_exact_path(self):
        """Test a literal pattern matches only that path."""
        watcher = Watcher("Gemfile")
        assert watcher.match("Gemfile")
        assert not watcher.match("lib/Gemfile.lock")

    def test_regex_match(self):
        """Test regex patterns are searched."""
        watcher = Watcher(re.compile(r"^lib/(.+)\.py$"))
        assert watcher.match("lib/foo.py")
        assert not watcher.match("tests/foo.py")

    def test_action_maps_path(self):
        """Test an action maps matched paths to other paths."""
        watcher = Watcher(re.compile(r"^lib/(.+)\.py$"), lambda m: f"tests/test_{m.group(1)}.py")
        assert watcher.resolve("lib/foo.py") == ["tests/test_foo.py"]

    def test_action_returning_nothing_drops_path(self):
        """Test a falsy action result drops the path."""
        watcher = Watcher("*.py", lambda path: None)
        assert watcher.resolve("a.py") == []

    def test_action_on_glob_receives_path(self):
        """Test glob actions receive the matched path."""
        watcher = Watcher("*.py", lambda path: [path, "all"])
        assert watcher.resolve("a.py") == ["a.py", "all"]

    def test_match_files_dedupes(self):
        """Test match_files keeps order and removes duplicates."""
        plugin = Plugin(name="p", watchers=["*.rb", "app/*"])
        matched = Watcher.match_files(plugin, ["app/a.rb", "b.css", "app/c.txt", "app/a.rb"])
        assert matched == ["app/a.rb", "app/c.txt"]

    def test_match_any(self):
        """Test match_any stops at the first matching path."""
        plugin = Plugin(name="p", watchers=["*.css"])
        assert Watcher.match_any(plugin, ["a.rb", "b.css"]) is True
        assert Watcher.match_any(plugin, ["a.rb"]) is False

    def test_match_guardfile(self):
        """Test Guardfile detection."""
        assert Watcher.match_guardfile(["x.rb", "Guardfile.json"], ["Guardfile.json"]) is True
        assert Watcher.match_guardfile(["x.rb"], ["Guardfile.json"]) is False
        assert Watcher.match_guardfile(["Guardfile.json"], []) is False

    def test_match_guardfile_is_literal(self):
        """Test glob characters in a Guardfile location are not expanded."""
        guardfile = "conf[1]/Guardfile.json"
        assert Watcher.match_guardfile([guardfile], [guardfile]) is True
        assert Watcher.match_guardfile(["conf1/Guardfile.json"], [guardfile]) is False
        assert Watcher.match_guardfile(["Guardfile.json"], ["Guardfile.*"]) is False

    def test_build_watchers_regex_prefix(self):
        """Test 're:' prefixed strings become regexes."""
        watchers = build_watchers(["*.rb", "re:^spec/.+_spec\\.rb$"])
        assert isinstance(watchers[0].pattern, str)
        assert watchers[1].match("spec/foo_spec.rb")


class TestPlugin:
    """Tests for the Plugin base class."""

    def test_default_name(self):
        """Test the name defaults to the lowercased class name."""
        class Rspec(Plugin):
            pass

        assert Rspec().name == "rspec"
        assert Rspec().title() == "Rspec"

    def test_typed_hooks_delegate(self):
        """Test typed change hooks fall back to run_on_changes."""
        plugin = Plugin(name="p")
        plugin.run_on_changes = Mock()

        plugin.run_on_additions(["a"])
        plugin.run_on_modifications(["m"])
        plugin.run_on_removals(["r"])

        assert [c.args[0] for c in plugin.run_on_changes.call_args_list] == [["a"], ["m"], ["r"]]

    def test_options_kept(self):
        """Test extra keyword options are stored."""
        plugin = Plugin(name="p", group=Group("g"), cli="--fast")
        assert plugin.options == {"cli": "--fast"}
        assert plugin.group == Group("g")


class TestShellPlugin:
    """Tests for ShellPlugin."""

    def test_run_on_changes_substitutes_paths(self):
        """Test {paths} is replaced with the changed paths."""
        runner = Mock()
        runner.run.return_value = True
        plugin = ShellPlugin(command="rspec {paths}", command_runner=runner)

        assert plugin.run_on_changes(["a_spec.rb", "b_spec.rb"]) is True
        runner.run.assert_called_once_with("rspec a_spec.rb b_spec.rb")

    def test_run_all_uses_all_command(self):
        """Test run_all prefers all_command."""
        runner = Mock()
        runner.run.return_value = True
        plugin = ShellPlugin(command="rspec {paths}", all_command="rspec", command_runner=runner)

        plugin.run_all()

        runner.run.assert_called_once_with("rspec")

    def test_start_runs_all_when_configured(self):
        """Test run_at_start triggers run_all on start."""
        runner = Mock()
        plugin = ShellPlugin(command="make", run_at_start=True, command_runner=runner)

        plugin.start()

        runner.run.assert_called_once_with("make")

    def test_missing_command(self):
        """Test a plugin without command does nothing."""
        runner = Mock()
        plugin = ShellPlugin(command_runner=runner)

        assert plugin.run_on_changes(["a"]) is True
        runner.run.assert_not_called()

    def test_failed_command_returns_false(self):
        """Test a failing command is reported."""
        runner = Mock()
        runner.run.return_value = False
        plugin = ShellPlugin(command="false", command_runner=runner)

        assert plugin.run_all() is False
