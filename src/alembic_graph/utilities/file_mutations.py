"""File mutation helpers for revision source files.

Provides functions to safely rewrite revision files on disk:
- apply_dependency_change: Rewrite one file's parent reference
- locate_revision_file: Find the file a revision lives in
- change_revision_parent: Check, locate, rewrite and log in one step
"""

from __future__ import annotations

import logging
from pathlib import Path

from alembic_graph.errors import DependencyChangeError
from alembic_graph.graph.builder import RevisionGraph
from alembic_graph.graph.mutations import (
    DependencyPlan,
    MutationEntry,
    MutationLog,
    check_dependency_change,
    plan_dependency_change,
)
from alembic_graph.utilities.alembic import AlembicRunner

logger = logging.getLogger(__name__)


def apply_dependency_change(file_path: Path, new_parent: str | None) -> str | None:
    """Rewrite the parent of the revision defined in file_path.

    Nothing is written when the ``down_revision`` assignment is missing,
    since Alembic would not see the change. A missing ``Revises:``
    docstring line is tolerated.

    Args:
        file_path: Path to the revision file.
        new_parent: New parent id, or a root sentinel.

    Returns:
        None if the file was updated successfully.
        A descriptive error string if the update failed.
    """
    file_path = Path(file_path)
    plan, error = _plan_file(file_path, new_parent)
    if error:
        return error
    if plan.changed:
        file_path.write_text(plan.new_text, encoding="utf-8")
    return None


def _plan_file(
    file_path: Path, new_parent: str | None
) -> tuple[DependencyPlan | None, str | None]:
    """Read file_path and plan the change. Returns (plan, None) or (None, error)."""
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        return None, f"Cannot read {file_path}: {e}"

    plan = plan_dependency_change(content, new_parent)
    if "down_revision" in plan.unmatched:
        return None, f"No down_revision assignment found in {file_path.name}"
    return plan, None


def locate_revision_file(
    graph: RevisionGraph,
    runner: AlembicRunner,
    revision_id: str,
) -> Path | None:
    """Resolve the source file of a revision.

    Uses the ``Path:`` seen in the history, falling back to
    ``alembic show`` when the history carried none.
    """
    node = graph.find_by_id(revision_id)
    if node is not None and node.path:
        path = runner.resolve_path(node.path)
        if path.exists():
            return path
    return runner.revision_path(node.id if node is not None else revision_id)


def change_revision_parent(
    graph: RevisionGraph,
    runner: AlembicRunner,
    target_id: str,
    new_parent: str | None,
    log: MutationLog | None = None,
) -> MutationEntry | None:
    """Point a revision at a new parent and record the change.

    The graph is only read; callers rebuild it afterwards.

    Returns:
        The logged MutationEntry, or None when the file already had that
        parent (e.g. a root re-targeted to root) and nothing was written.

    Raises:
        DependencyChangeError: If the target or new parent is unknown, the
            file cannot be located, or the file could not be rewritten.
    """
    target, parent = check_dependency_change(graph, target_id, new_parent)
    file_path = locate_revision_file(graph, runner, target.id)
    if file_path is None:
        raise DependencyChangeError(f"Could not find file for revision {target.id}")

    plan, error = _plan_file(file_path, parent.id if parent else None)
    if error:
        raise DependencyChangeError(error)
    if not plan.changed:
        logger.info(
            "%s already has parent %s, nothing to change",
            target.short_id,
            parent.id if parent else "<base>",
        )
        return None
    file_path.write_text(plan.new_text, encoding="utf-8")

    entry = MutationEntry(
        operation="change_parent",
        target_id=target.id,
        before_state={"down_revision": target.down_revision, "path": str(file_path)},
        after_state={"down_revision": parent.id if parent else None, "path": str(file_path)},
    )
    if log is not None:
        log.append(entry)
    logger.info(
        "changed parent of %s: %s -> %s",
        target.short_id,
        target.down_revision or "<base>",
        parent.id if parent else "<base>",
    )
    return entry
