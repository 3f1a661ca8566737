"""
alembic_graph.cli - Command-line interface.

Main entry point for the alembic-graph CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from alembic_graph import __version__
from alembic_graph.commands import config_cmd, history, migrate, serve, set_parent, show

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)-5.5s [%(name)s] %(message)s"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure stderr logging for the CLI.

    ``-v`` selects DEBUG, ``-q`` WARNING, and INFO otherwise.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("alembic_graph").setLevel(level)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="alembic-graph",
        description="Inspect and edit the dependency graph of Alembic migrations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  alembic-graph history                 # Revisions oldest-first with status markers
  alembic-graph history --json          # Serialized graph for tooling
  alembic-graph show 1a2b3c4d           # One revision, parent and children
  alembic-graph upgrade                 # Upgrade to head
  alembic-graph downgrade 1a2b3c4d      # Downgrade (asks for confirmation)
  alembic-graph set-parent 9f8e 1a2b    # Point 9f8e... at a new parent
  alembic-graph set-parent 9f8e base --dry-run
  alembic-graph serve                   # JSON API with auto-refresh

Configuration:
  alembic-graph config path             # Show config file location
  alembic-graph config show             # View all settings

For detailed command help: alembic-graph <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"alembic-graph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-C",
        "--directory",
        type=Path,
        help="Start config discovery from DIR instead of the current directory",
        metavar="DIR",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # history command
    history_parser = subparsers.add_parser(
        "history",
        help="Show all revisions oldest-first",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Markers:
  @  current (applied to the database)
  *  head
  M  merge point
  +  applied (current, or an ancestor of a current revision)
""",
    )
    history_parser.add_argument(
        "--format",
        choices=["text", "json", "csv"],
        default="text",
        help="Output format (default: text)",
    )
    history_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Shorthand for --format json",
    )
    history_parser.add_argument(
        "--applied",
        action="store_true",
        help="Only show applied revisions",
    )

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show one revision",
    )
    show_parser.add_argument("revision", help="Revision ID or unique prefix")
    show_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output JSON",
    )

    # upgrade command
    upgrade_parser = subparsers.add_parser(
        "upgrade",
        help="Upgrade the database to a revision",
    )
    upgrade_parser.add_argument(
        "revision",
        nargs="?",
        default="head",
        help="Target revision (default: head)",
    )

    # downgrade command
    downgrade_parser = subparsers.add_parser(
        "downgrade",
        help="Downgrade the database to a revision",
    )
    downgrade_parser.add_argument("revision", help="Target revision")
    downgrade_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )

    # stamp command
    stamp_parser = subparsers.add_parser(
        "stamp",
        help="Mark a revision applied without running it",
    )
    stamp_parser.add_argument("revision", help="Revision to stamp")
    stamp_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )

    # revision command
    revision_parser = subparsers.add_parser(
        "revision",
        help="Create a new revision file",
    )
    revision_parser.add_argument(
        "-m",
        "--message",
        required=True,
        help="Revision message",
    )
    revision_parser.add_argument(
        "--autogenerate",
        action="store_true",
        help="Populate the revision from model changes",
    )

    # set-parent command
    set_parent_parser = subparsers.add_parser(
        "set-parent",
        help="Change the parent of a revision",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Rewrites the Revises: line and the down_revision assignment of the
revision file. Use base, <base> or None as NEW_PARENT to make the
revision a root. The resulting history is not checked for cycles.
""",
    )
    set_parent_parser.add_argument("revision", help="Revision to change")
    set_parent_parser.add_argument("new_parent", help="New parent revision, or base")
    set_parent_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation",
    )
    set_parent_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the diff instead of writing the file",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the JSON API server",
    )
    serve_parser.add_argument(
        "--host",
        help="Bind address (default: from config)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port (default: from config)",
    )
    serve_parser.add_argument(
        "--no-watch",
        action="store_true",
        help="Do not refresh when revision files change",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")
    config_show = config_subparsers.add_parser("show", help="Show effective configuration")
    config_show.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output JSON",
    )
    config_subparsers.add_parser("path", help="Show config file location")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, quiet=args.quiet)
    logger.debug("command %s", args.command)

    try:
        # Dispatch to command handlers
        if args.command == "history":
            return history.run(args)
        elif args.command == "show":
            return show.run(args)
        elif args.command in ("upgrade", "downgrade", "stamp", "revision"):
            return migrate.run(args)
        elif args.command == "set-parent":
            return set_parent.run(args)
        elif args.command == "serve":
            return serve.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
