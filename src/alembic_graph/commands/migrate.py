"""
alembic_graph.commands.migrate - Run alembic migrations.

- `alembic-graph upgrade [REV]` - Upgrade to REV (default: head)
- `alembic-graph downgrade REV` - Downgrade to REV (asks first)
- `alembic-graph stamp REV` - Mark REV applied without running it (asks first)
- `alembic-graph revision -m MSG` - Create a new revision file
"""

from __future__ import annotations

import argparse
import logging
import sys

from alembic_graph.graph.factory import build_graph, get_runner
from alembic_graph.utilities.alembic import AlembicRunner, downgrade_warning, stamp_warning

logger = logging.getLogger(__name__)


def confirm(warning: str, assume_yes: bool = False) -> bool:
    """Show a warning and ask the user to proceed.

    Returns:
        True if assume_yes is set or the user answered yes.
    """
    if assume_yes:
        return True
    print(f"Warning: {warning}", file=sys.stderr)
    try:
        response = input("Proceed? [y/N] ").strip().lower()
    except EOFError:
        return False
    return response in ("y", "yes")


def run(args: argparse.Namespace) -> int:
    """Run a migration command."""
    runner = get_runner(
        config_path=getattr(args, "config", None),
        start_path=getattr(args, "directory", None),
    )

    command = args.command
    if command == "upgrade":
        return _upgrade(runner, args)
    elif command == "downgrade":
        return _downgrade(runner, args)
    elif command == "stamp":
        return _stamp(runner, args)
    elif command == "revision":
        return _revision(runner, args)
    else:
        print(f"Unknown migration command: {command}", file=sys.stderr)
        return 1


def _upgrade(runner: AlembicRunner, args: argparse.Namespace) -> int:
    target = args.revision
    _echo(runner.upgrade(target), args)
    _report(runner, args, f"Successfully upgraded to revision {target}")
    return 0


def _downgrade(runner: AlembicRunner, args: argparse.Namespace) -> int:
    target = args.revision
    if not confirm(downgrade_warning(target), getattr(args, "yes", False)):
        print("Downgrade cancelled.")
        return 1
    _echo(runner.downgrade(target), args)
    _report(runner, args, f"Successfully downgraded to revision {target}")
    return 0


def _stamp(runner: AlembicRunner, args: argparse.Namespace) -> int:
    target = args.revision
    if not confirm(stamp_warning(target), getattr(args, "yes", False)):
        print("Stamp cancelled.")
        return 1
    _echo(runner.stamp(target), args)
    _report(runner, args, f"Successfully stamped revision {target}")
    return 0


def _revision(runner: AlembicRunner, args: argparse.Namespace) -> int:
    _echo(runner.revision(args.message, autogenerate=args.autogenerate), args)
    _report(runner, args, f"Created revision: {args.message}")
    return 0


def _echo(output: str, args: argparse.Namespace) -> None:
    if output.strip() and getattr(args, "verbose", False):
        print(output.rstrip())


def _report(runner: AlembicRunner, args: argparse.Namespace, message: str) -> None:
    """Print the success message and the refreshed current revisions."""
    logger.info(message)
    if getattr(args, "quiet", False):
        return
    print(message)
    graph = build_graph(runner=runner)
    current = [node.short_id for node in graph.iter_current()]
    print(f"Current: {', '.join(current) if current else '<base>'}")
