"""
alembic_graph.commands.set_parent - Change a revision's parent.

Rewrites the ``Revises:`` line and the ``down_revision`` assignment of
one revision file, after checking both ids against the live graph.
"""

from __future__ import annotations

import argparse
import sys

from alembic_graph.errors import DependencyChangeError
from alembic_graph.graph.mutations import (
    check_dependency_change,
    dependency_warning,
    plan_dependency_change,
)
from alembic_graph.utilities.file_mutations import change_revision_parent, locate_revision_file


def run(args: argparse.Namespace) -> int:
    """Run the set-parent command."""
    from alembic_graph.commands.migrate import confirm
    from alembic_graph.graph.factory import build_graph, get_runner

    runner = get_runner(
        config_path=getattr(args, "config", None),
        start_path=getattr(args, "directory", None),
    )
    graph = build_graph(runner=runner)

    try:
        target, parent = check_dependency_change(graph, args.revision, args.new_parent)
    except DependencyChangeError as e:
        print(f"Warning: {e}", file=sys.stderr)
        return 1
    new_parent = parent.id if parent else None

    if getattr(args, "dry_run", False):
        file_path = locate_revision_file(graph, runner, target.id)
        if file_path is None:
            print(f"Warning: Could not find file for revision {target.id}", file=sys.stderr)
            return 1
        plan = plan_dependency_change(file_path.read_text(encoding="utf-8"), new_parent)
        for name in plan.unmatched:
            print(f"Warning: no {name} found in {file_path.name}", file=sys.stderr)
        if plan.changed:
            print(plan.diff(str(file_path)), end="")
        else:
            print("No changes.")
        return 0

    if not confirm(dependency_warning(target.id, new_parent), getattr(args, "yes", False)):
        print("Dependency change cancelled.")
        return 1

    try:
        entry = change_revision_parent(graph, runner, target.id, new_parent)
    except DependencyChangeError as e:
        print(f"Warning: {e}", file=sys.stderr)
        return 1
    if entry is None:
        print("No changes.")
        return 0

    graph = build_graph(runner=runner)
    if not getattr(args, "quiet", False):
        print(f"Successfully modified dependency for revision {target.id}")
        print(f"  file: {entry.after_state['path']}")
        updated = graph.find_by_id(target.id)
        if updated is not None:
            print(f"  parent: {updated.down_revision or '<base>'}")
    return 0
