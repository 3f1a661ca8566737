"""RevisionNode - immutable revision entity of the revision graph.

A RevisionNode is a RevisionRecord frozen together with the authoritative
status flags taken from ``alembic current`` and ``alembic heads``.
"""

from __future__ import annotations

from dataclasses import dataclass

from alembic_graph.graph.parsers import RevisionRecord


@dataclass(frozen=True)
class RevisionNode:
    """A node in the revision graph.

    Attributes:
        id: Full revision identifier.
        message: Revision description ("" if absent).
        branch_labels: Branch labels attached to the revision.
        down_revision: Parent id, or None for a root.
        is_merge: Revision joins two branches.
        is_current: Revision is applied to the database (stamped current).
        is_head: Revision is a branch tip.
        date: Creation date text, if known.
        path: Source file of the revision, if known.
    """

    id: str
    message: str = ""
    branch_labels: tuple[str, ...] = ()
    down_revision: str | None = None
    is_merge: bool = False
    is_current: bool = False
    is_head: bool = False
    date: str | None = None
    path: str | None = None

    @classmethod
    def from_record(
        cls,
        record: RevisionRecord,
        current: frozenset[str] | set[str],
        heads: frozenset[str] | set[str],
    ) -> RevisionNode:
        """Freeze a parsed record, taking status from the id sets.

        Header-line hints on the record are ignored.
        """
        return cls(
            id=record.id,
            message=record.message,
            branch_labels=record.branch_labels,
            down_revision=record.down_revision,
            is_merge=record.is_merge,
            is_current=record.id in current,
            is_head=record.id in heads,
            date=record.date,
            path=record.path,
        )

    @property
    def short_id(self) -> str:
        """First 8 characters of the id."""
        return self.id[:8]

    @property
    def is_root(self) -> bool:
        """True if this revision has no parent."""
        return self.down_revision is None

    def __str__(self) -> str:
        """Return string representation for display."""
        first_line = self.message.splitlines()[0] if self.message else ""
        return f"{self.short_id} {first_line}".rstrip()
