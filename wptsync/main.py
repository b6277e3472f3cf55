#!/usr/bin/env python3
"""CLI entry point for the WPT sync tool."""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .core.deadline import SYNC_TIMEOUT
from .core.operations import add_files, init_config
from .core.pipeline import SyncOptions, run_sync
from .errors import WptSyncError

console = Console()
err_console = Console(stderr=True)

COMMANDS = ("init", "add", "sync")
HELP_ARGS = ("help", "-h", "--help")

EPILOG = """\
examples:
  wptsync init                   Create wpt.json with the latest WPT commit
  wptsync add url/               Add all files from the url/ folder
  wptsync add encoding/          Add all files from encoding/ recursively
  wptsync                        Sync files using wpt.json
  wptsync sync -dry-run          Preview what would be synced
"""


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(command: str, error: Exception) -> int:
    err_console.print(f"[red]wptsync {command}: {escape(str(error))}")
    return 1


def cmd_init(args: argparse.Namespace) -> int:
    """Create a new configuration file."""
    try:
        init_config(args.config, console=console)
    except WptSyncError as e:
        return _fail("init", e)
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    """Add files from a WPT path to the configuration."""
    if not args.path:
        err_console.print("[red]wptsync add: missing required path argument")
        args.add_parser.print_usage(sys.stderr)
        return 1

    try:
        add_files(args.config, args.path, console=console)
    except WptSyncError as e:
        return _fail("add", e)
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    """Download files according to the configuration."""
    options = SyncOptions(
        skip_patching=args.skip_patches,
        dry_run=args.dry_run,
        timeout=args.timeout,
    )

    try:
        run_sync(args.config, options, console=console)
    except WptSyncError as e:
        return _fail("sync", e)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Long options accept both the single-dash (-dry-run) and double-dash
    (--dry-run) spellings.
    """
    parser = argparse.ArgumentParser(
        prog="wptsync",
        description="Sync files from the web-platform-tests repository",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-config", "--config",
        dest="config",
        default="wpt.json",
        help="path to the configuration file (default: wpt.json)",
    )
    common.add_argument(
        "-verbose", "--verbose",
        dest="verbose",
        action="store_true",
        help="show debug logging",
    )

    # init command
    subparsers.add_parser(
        "init",
        parents=[common],
        help="Create a new wpt.json configuration file",
        description="Fetch the latest commit SHA from the web-platform-tests repository "
        "and create a configuration file with an empty files list.",
    )

    # add command
    add_parser = subparsers.add_parser(
        "add",
        parents=[common],
        help="Add files from a WPT folder to the configuration",
        description="Add a single .js file, or every .js file under a folder (recursively). "
        "Files ending in .any.js are mapped to .js in the destination path.",
    )
    add_parser.add_argument(
        "path",
        nargs="?",
        help="Path in the WPT repository (e.g., url/, resources/testharness.js)",
    )
    add_parser.set_defaults(add_parser=add_parser)

    # sync command
    sync_parser = subparsers.add_parser(
        "sync",
        parents=[common],
        help="Download WPT files according to the configuration (default)",
        description="Download files at the commit pinned in the configuration file, "
        "and optionally apply patches to customize them.",
    )
    sync_parser.add_argument(
        "-dry-run", "--dry-run",
        dest="dry_run",
        action="store_true",
        help="print the actions that would be taken without writing files",
    )
    sync_parser.add_argument(
        "-skip-patches", "--skip-patches",
        dest="skip_patches",
        action="store_true",
        help="download files but do not apply any configured patches",
    )
    sync_parser.add_argument(
        "-timeout", "--timeout",
        dest="timeout",
        type=float,
        default=SYNC_TIMEOUT,
        help=f"time budget in seconds for the whole sync (default: {SYNC_TIMEOUT:g})",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()

    if argv and argv[0] in HELP_ARGS:
        parser.print_help()
        return 0

    # No command, or only flags, means sync
    if not argv or argv[0].startswith("-"):
        argv.insert(0, "sync")

    if argv[0] not in COMMANDS:
        err_console.print(f"[red]wptsync: unknown command {escape(repr(argv[0]))}\n")
        parser.print_help(sys.stderr)
        return 1

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "init":
        return cmd_init(args)
    elif args.command == "add":
        return cmd_add(args)
    else:
        return cmd_sync(args)


if __name__ == "__main__":
    sys.exit(main())
