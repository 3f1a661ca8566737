"""Dependency mutation planning for revision files.

Changing a revision's parent means editing two places in its source
file: the ``Revises:`` line of the module docstring, which humans read,
and the ``down_revision`` assignment, which Alembic reads. The planner
rewrites both with pattern replacements; it does not parse the file as
Python and it trusts the ids it is given. Callers run
``check_dependency_change`` against the graph first.

This module also provides the records used to report graph problems and
to log applied changes.
"""

from __future__ import annotations

import difflib
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from alembic_graph.errors import DependencyChangeError

if TYPE_CHECKING:
    from alembic_graph.graph.builder import RevisionGraph
    from alembic_graph.graph.RevisionNode import RevisionNode

# Values accepted as "make this revision a root"
ROOT_SENTINELS = frozenset({"<base>", "base", "None", "none", ""})

REVISES_PATTERN = re.compile(r"^Revises:[^\r\n]*", re.MULTILINE)
DOWN_REVISION_PATTERN = re.compile(
    r"^down_revision(?P<annotation>\s*:[^=\r\n]+?)?\s*=\s*"
    r"(?P<value>'[^'\r\n]*'|\"[^\"\r\n]*\"|None|\([^)]*\))",
    re.MULTILINE,
)


def is_root_sentinel(value: str | None) -> bool:
    """True if value asks for no parent."""
    return value is None or value.strip() in ROOT_SENTINELS


@dataclass(frozen=True)
class BrokenReference:
    """A parent id that does not resolve to a revision in the graph.

    Captured during graph build, e.g. when the history was truncated
    or a revision file was deleted.

    Attributes:
        source_id: ID of the revision naming the parent.
        target_id: Parent ID that was referenced but doesn't exist.
    """

    source_id: str
    target_id: str

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"{self.source_id} --[down_revision]--> {self.target_id} (missing)"


@dataclass(frozen=True)
class Patch:
    """One pattern replacement inside a revision file.

    Attributes:
        name: Which location this patch targets.
        pattern: Regex the old text must match.
        replacement: Text written in place of the first match.
        old_text: Text that matched, or None if the pattern found nothing.
    """

    name: str
    pattern: str
    replacement: str
    old_text: str | None = None

    @property
    def matched(self) -> bool:
        return self.old_text is not None


@dataclass(frozen=True)
class DependencyPlan:
    """The computed rewrite of a revision file.

    Attributes:
        new_parent: Parent id written, or None when the revision becomes a root.
        patches: The applied replacements, in file order of application.
        original_text: Source text before the change.
        new_text: Source text after the change.
    """

    new_parent: str | None
    patches: tuple[Patch, ...]
    original_text: str
    new_text: str

    @property
    def changed(self) -> bool:
        """True if the rewrite differs from the original text."""
        return self.new_text != self.original_text

    @property
    def unmatched(self) -> list[str]:
        """Names of the locations that were not found in the file."""
        return [patch.name for patch in self.patches if not patch.matched]

    def diff(self, path: str = "revision.py") -> str:
        """Unified diff between the original and rewritten text."""
        return "".join(
            difflib.unified_diff(
                self.original_text.splitlines(keepends=True),
                self.new_text.splitlines(keepends=True),
                fromfile=f"a/{path}",
                tofile=f"b/{path}",
            )
        )


def _replace_first(
    name: str, pattern: re.Pattern[str], text: str, render: Callable[[re.Match[str]], str]
) -> tuple[str, Patch]:
    """Replace the first match of pattern with render(match)."""
    match = pattern.search(text)
    if match is None:
        return text, Patch(name=name, pattern=pattern.pattern, replacement="")
    replacement = render(match)
    new_text = text[: match.start()] + replacement + text[match.end() :]
    return new_text, Patch(
        name=name,
        pattern=pattern.pattern,
        replacement=replacement,
        old_text=match.group(0),
    )


def plan_dependency_change(source_text: str, new_parent: str | None) -> DependencyPlan:
    """Compute the rewritten revision file for a new parent.

    The ``Revises:`` line becomes ``Revises: <id>`` and the
    ``down_revision`` assignment becomes ``down_revision = "<id>"``
    (a type annotation and the original quote style are kept). For a
    root sentinel both become their explicit no-parent forms:
    ``Revises:`` and ``down_revision = None``, unless the assignment is
    already ``None``; an existing root is left untouched.

    Args:
        source_text: Full text of the target revision file.
        new_parent: New parent id, or a root sentinel (``<base>``, ``None``).

    Returns:
        DependencyPlan with the new text; ``unmatched`` lists locations
        that were not found.
    """
    parent = None if is_root_sentinel(new_parent) else new_parent.strip()
    already_root = False
    if parent is None:
        current = DOWN_REVISION_PATTERN.search(source_text)
        already_root = current is not None and current.group("value") == "None"

    def render_revises(match: re.Match[str]) -> str:
        if already_root:
            return match.group(0)
        return "Revises:" if parent is None else f"Revises: {parent}"

    def render_down_revision(match: re.Match[str]) -> str:
        if already_root:
            return match.group(0)
        annotation = match.group("annotation") or ""
        if parent is None:
            value = "None"
        else:
            old_value = match.group("value")
            quote = old_value[0] if old_value[0] in "'\"" else '"'
            value = f"{quote}{parent}{quote}"
        return f"down_revision{annotation} = {value}"

    text, revises = _replace_first("revises_line", REVISES_PATTERN, source_text, render_revises)
    text, assignment = _replace_first(
        "down_revision", DOWN_REVISION_PATTERN, text, render_down_revision
    )
    return DependencyPlan(
        new_parent=parent,
        patches=(revises, assignment),
        original_text=source_text,
        new_text=text,
    )


def check_dependency_change(
    graph: RevisionGraph,
    target_id: str,
    new_parent: str | None,
) -> tuple[RevisionNode, RevisionNode | None]:
    """Validate a requested parent change against the graph.

    Checks that the target exists, that the new parent exists unless it
    is a root sentinel, and that a revision is not made its own parent.
    Whether the result is still a connected, acyclic history is not
    checked.

    Returns:
        (target node, new parent node or None for root).

    Raises:
        DependencyChangeError: If a check fails.
    """
    target = graph.find_by_id(target_id)
    if target is None:
        raise DependencyChangeError(f"Revision {target_id} not found")
    if is_root_sentinel(new_parent):
        return target, None
    parent = graph.find_by_id(new_parent.strip())
    if parent is None:
        raise DependencyChangeError(f"New parent revision {new_parent} not found")
    if parent.id == target.id:
        raise DependencyChangeError(f"Revision {target.id} cannot be its own parent")
    return target, parent


def dependency_warning(target_id: str, new_parent: str | None) -> str:
    """The irreversible-action warning shown before a parent change."""
    parent = "<base>" if is_root_sentinel(new_parent) else new_parent
    return (
        f"You are about to change the parent of revision {target_id} to {parent}. "
        "This will modify the Python source file directly and can corrupt your "
        "migration history if not done carefully. This action cannot be undone."
    )


@dataclass
class MutationEntry:
    """Single applied mutation, kept for the session's change history.

    Attributes:
        operation: Operation type (e.g., "change_parent").
        target_id: Revision that was changed.
        before_state: State before mutation.
        after_state: State after mutation.
        id: Unique mutation ID (UUID4).
        timestamp: When the mutation occurred.
    """

    operation: str
    target_id: str
    before_state: dict[str, Any]
    after_state: dict[str, Any]
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        """Human-readable representation."""
        return f"[{self.id[:8]}] {self.operation}({self.target_id})"


class MutationLog:
    """Append-only history of applied mutations, oldest first."""

    def __init__(self) -> None:
        """Initialize an empty mutation log."""
        self._entries: list[MutationEntry] = []

    def append(self, entry: MutationEntry) -> None:
        """Append a mutation entry to the log."""
        self._entries.append(entry)

    def iter_entries(self) -> Iterator[MutationEntry]:
        """Iterate over all entries in chronological order."""
        yield from self._entries

    def __len__(self) -> int:
        """Return the number of entries in the log."""
        return len(self._entries)

    def last(self) -> MutationEntry | None:
        """Return the most recent entry, or None if empty."""
        return self._entries[-1] if self._entries else None


__all__ = [
    "BrokenReference",
    "DependencyPlan",
    "MutationEntry",
    "MutationLog",
    "Patch",
    "ROOT_SENTINELS",
    "check_dependency_change",
    "dependency_warning",
    "is_root_sentinel",
    "plan_dependency_change",
]
