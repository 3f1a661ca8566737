"""Parsers for ``alembic`` command output.

This module holds the record type shared by the parsers:

- RevisionRecord: One revision recovered from ``alembic history --verbose``

Exports:
- HistoryParser: Line-scanning state machine over the verbose history
- parse_history: Convenience wrapper returning records newest-first
- parse_revision_set: Extract revision ids from ``current``/``heads`` output
- resolve_status: Build the current and head id sets together
"""

from __future__ import annotations

from dataclasses import dataclass

# Sentinel Alembic prints for "no parent"
BASE_MARKER = "<base>"


@dataclass(frozen=True)
class RevisionRecord:
    """A revision as recovered from the verbose history text.

    Records come out of the parser newest-first, in the order the CLI
    printed them. They are immutable once emitted.

    Attributes:
        id: Full revision identifier (lowercase hex).
        message: Description text, possibly multi-line; "" if absent.
        branch_labels: Labels from the header line and ``Branch names:``.
        down_revision: Parent revision id, or None for a root.
        is_merge: True when the body carried a merge marker.
        date: ``Create Date:`` value, untouched.
        path: ``Path:`` value, the revision's source file.
        current_hint: Header line carried ``(current)``.
        head_hint: Header line carried ``(head)``.
    """

    id: str
    message: str = ""
    branch_labels: tuple[str, ...] = ()
    down_revision: str | None = None
    is_merge: bool = False
    date: str | None = None
    path: str | None = None
    current_hint: bool = False
    head_hint: bool = False

    @property
    def short_id(self) -> str:
        """First 8 characters of the id."""
        return self.id[:8]

    @property
    def is_root(self) -> bool:
        """True if this revision has no parent."""
        return self.down_revision is None


from alembic_graph.graph.parsers.history import HistoryParser, parse_history  # noqa: E402
from alembic_graph.graph.parsers.status import (  # noqa: E402
    RevisionStatus,
    parse_revision_set,
    resolve_status,
)

__all__ = [
    "BASE_MARKER",
    "HistoryParser",
    "RevisionRecord",
    "RevisionStatus",
    "parse_history",
    "parse_revision_set",
    "resolve_status",
]
