"""
Command-line interface for task-guard.

Commands:
- start: watch directories and run plugins on changes
- show:  list groups and plugins from the Guardfile
- list:  list available plugin types
- init:  write a starter Guardfile
"""

import argparse
import logging
import sys
from pathlib import Path

from task_guard import constants
from task_guard.coordinator import Coordinator
from task_guard.errors import GuardError
from task_guard.guardfile import BUILTIN_PLUGINS, GuardfileEvaluator, write_starter
from task_guard.models import GuardOptions
from task_guard.registry import PluginRegistry


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else getattr(logging, constants.TASK_GUARD_LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def options_from_args(args) -> GuardOptions:
    """Build session options from parsed arguments."""
    return GuardOptions(
        clear=args.clear,
        notify=args.notify,
        debug=args.debug,
        group=args.group or [],
        plugin=args.plugin or [],
        watchdir=args.watchdir or [],
        guardfile=args.guardfile,
        no_interactions=args.no_interactions,
        latency=args.latency,
        force_polling=args.force_polling,
        wait_for_delay=args.wait_for_delay
    )


def cmd_start(args):
    """Start watching and block until stopped."""
    configure_logging(args.debug)

    try:
        coordinator = Coordinator(options_from_args(args))
        coordinator.setup()
    except GuardError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    coordinator.start()
    return 0


def cmd_show(args):
    """Show groups and plugins defined in the Guardfile."""
    registry = PluginRegistry()
    evaluator = GuardfileEvaluator(registry, guardfile=args.guardfile)

    try:
        evaluator.evaluate()
    except GuardError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print(f"Guardfile: {evaluator.guardfile_path}")
    for group in registry.groups:
        plugins = registry.plugins(group=group)
        print(f"\n📁 {group.name} ({len(plugins)} plugins)")
        for plugin in plugins:
            patterns = ", ".join(repr(w) for w in plugin.watchers) or "-"
            print(f"   - {plugin.name} [{type(plugin).__name__}] watching {patterns}")
    return 0


def cmd_list(args):
    """List the built-in plugin types."""
    print("Available plugin types:")
    for name, plugin_class in sorted(BUILTIN_PLUGINS.items()):
        summary = (plugin_class.__doc__ or "").strip().splitlines()[0:1]
        print(f"   {name:<10} {summary[0] if summary else ''}")
    print("\nCustom plugins: use \"type\": \"package.module:ClassName\"")
    return 0


def cmd_init(args):
    """Write a starter Guardfile in the current directory."""
    path = Path(args.guardfile) if args.guardfile else Path.cwd() / constants.GUARDFILE_NAME
    try:
        write_starter(path)
    except GuardError as e:
        print(f"⚠️  {e}", file=sys.stderr)
        return 1
    print(f"✅ Wrote {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="task-guard",
        description="Run tasks when files change"
    )
    parser.add_argument(
        "-G", "--guardfile",
        help="Path to the Guardfile (default: ./Guardfile.json)"
    )
    subparsers = parser.add_subparsers(dest="command")

    start = subparsers.add_parser("start", help="Start watching for changes")
    start.add_argument("-c", "--clear", action="store_true", help="Clear the screen before plugins run")
    start.add_argument("-n", "--no-notify", dest="notify", action="store_false", help="Disable notifications")
    start.add_argument("-d", "--debug", action="store_true", help="Show debug output")
    start.add_argument("-g", "--group", action="append", help="Run only the given group (repeatable)")
    start.add_argument("-P", "--plugin", action="append", help="Run only the given plugin (repeatable)")
    start.add_argument("-w", "--watchdir", action="append", help="Directory to watch (repeatable)")
    start.add_argument("-i", "--no-interactions", action="store_true", help="Turn off the interactive shell")
    start.add_argument("-l", "--latency", type=float, help="Listener latency in seconds")
    start.add_argument("-p", "--force-polling", action="store_true", help="Use polling instead of native events")
    start.add_argument("-y", "--wait-for-delay", type=float, help="Seconds of quiet before a burst is reported")
    start.set_defaults(func=cmd_start)

    show = subparsers.add_parser("show", help="Show groups and plugins")
    show.set_defaults(func=cmd_show)

    list_cmd = subparsers.add_parser("list", help="List plugin types")
    list_cmd.set_defaults(func=cmd_list)

    init = subparsers.add_parser("init", help="Write a starter Guardfile")
    init.set_defaults(func=cmd_init)

    return parser


def main(argv=None):
    """CLI entry point - called by setuptools entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
