"""HistoryParser - state machine over ``alembic history --verbose`` output.

The verbose history is not a formal grammar. Each revision starts with a
``Rev:`` header, followed by keyword lines (``Parent:``, ``Path:``, ...)
and a free-text docstring that Alembic indents and interleaves with its
own ``Revision ID:``/``Revises:``/``Create Date:`` lines. The CLI's logger
may also print ``INFO  [...]`` lines anywhere.

Example input::

    Rev: 27c6a30d7c24 (head) (current)
    Parent: ae1027a6acf0
    Path: /app/alembic/versions/27c6a30d7c24_add_users.py

        add users table

        Revision ID: 27c6a30d7c24
        Revises: ae1027a6acf0
        Create Date: 2024-01-08 12:00:00.000000

The scan is a single forward pass. Every line moves the parser between
three states and may update the draft record for the current revision;
finished records are handed to an ``emit`` callback.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from alembic_graph.graph.parsers import BASE_MARKER, RevisionRecord

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """Where the scanner is relative to the current revision block."""

    # No revision open: before the first header or after a malformed one
    IDLE = "idle"
    # Inside a revision block, outside its message
    BODY = "body"
    # Accumulating message lines
    MESSAGE = "message"


@dataclass
class _Draft:
    """Mutable accumulator for the revision being scanned."""

    id: str
    down_revision: str | None = None
    message_lines: list[str] = field(default_factory=list)
    branch_labels: list[str] = field(default_factory=list)
    is_merge: bool = False
    date: str | None = None
    path: str | None = None
    current_hint: bool = False
    head_hint: bool = False

    def add_label(self, label: str) -> None:
        if label and label not in self.branch_labels:
            self.branch_labels.append(label)

    def freeze(self) -> RevisionRecord:
        return RevisionRecord(
            id=self.id,
            message="\n".join(self.message_lines).strip(),
            branch_labels=tuple(self.branch_labels),
            down_revision=self.down_revision,
            is_merge=self.is_merge,
            date=self.date,
            path=self.path,
            current_hint=self.current_hint,
            head_hint=self.head_hint,
        )


class HistoryParser:
    """Parser for ``alembic history --verbose`` text.

    Line rules, checked in this order on the stripped line:

    - ``Rev: <hex>``: close the open revision and start a new one.
      Parenthesized header tokens other than ``current``/``head``
      become branch labels.
      A ``Rev:`` line without a valid id closes the open revision and
      leaves the parser idle until the next valid header.
    - ``Parent: <hex>|<base>``: set the parent (None for ``<base>``).
    - ``Merges: <hex>, <hex>``: flag a merge; the first id is the parent.
    - ``Path:``: store the file path, end the message.
    - any line containing ``Merge point:``: flag a merge.
    - ``Revision ID:``, ``Revises:``, ``Create Date:`` and the other
      metadata keywords: end the message (``Create Date:`` is kept).
    - logger noise (``INFO  [...]``): ignored.
    - other non-empty line: start or continue the message.
    - empty line: end the message.
    """

    HEADER_PREFIX = "Rev:"
    HEADER_PATTERN = re.compile(r"^Rev:\s*(?P<id>[0-9a-f]+)\b(?P<rest>.*)$")
    PARENT_PATTERN = re.compile(r"^Parent:\s*(?P<parent>[0-9a-f]+|<base>)")
    MERGES_PATTERN = re.compile(r"^Merges:\s*(?P<parent>[0-9a-f]+)")
    PATH_PATTERN = re.compile(r"^Path:\s*(?P<path>.*)$")
    DATE_PATTERN = re.compile(r"^Create Date:\s*(?P<date>.+)$")
    BRANCH_NAMES_PATTERN = re.compile(r"^Branch names:\s*(?P<names>.+)$")
    LABEL_PATTERN = re.compile(r"\(([^)]+)\)")
    # Alembic's default log format is "%(levelname)-5.5s [%(name)s] %(message)s"
    LOG_NOISE_PATTERN = re.compile(r"^(?:INFO\s|(?:WARNI|ERROR|DEBUG|CRITI)\s*\[)")

    MERGE_MARKER = "Merge point:"
    METADATA_PREFIXES = (
        "Revision ID:",
        "Revises:",
        "Create Date:",
        "Also depends on:",
        "Branches into:",
        "Branch names:",
    )
    RESERVED_LABELS = {"current": "current_hint", "head": "head_hint"}

    def parse(self, text: str) -> list[RevisionRecord]:
        """Parse the full history text.

        Args:
            text: Captured stdout of ``alembic history --verbose``.

        Returns:
            Records in the order encountered (newest-first).
        """
        records: list[RevisionRecord] = []
        self.scan(text.splitlines(), records.append)
        return records

    def scan(self, lines: Iterable[str], emit: Callable[[RevisionRecord], None]) -> None:
        """Run the state machine over lines, emitting finished records."""
        state = ScanState.IDLE
        draft: _Draft | None = None
        for raw in lines:
            state, draft = self.step(state, draft, raw.strip(), emit)
        self._finalize(draft, emit)

    def step(
        self,
        state: ScanState,
        draft: _Draft | None,
        line: str,
        emit: Callable[[RevisionRecord], None],
    ) -> tuple[ScanState, _Draft | None]:
        """Advance the machine by one stripped line.

        Returns:
            The next (state, draft) pair.
        """
        if line.startswith(self.HEADER_PREFIX):
            self._finalize(draft, emit)
            return self._open(line)

        if draft is None:
            return ScanState.IDLE, None

        parent_match = self.PARENT_PATTERN.match(line)
        if parent_match:
            parent = parent_match.group("parent")
            draft.down_revision = None if parent == BASE_MARKER else parent
            return state, draft
        if line.startswith("Parent:"):
            return state, draft

        merges_match = self.MERGES_PATTERN.match(line)
        if merges_match:
            draft.is_merge = True
            draft.down_revision = merges_match.group("parent")
            return ScanState.BODY, draft

        path_match = self.PATH_PATTERN.match(line)
        if path_match:
            draft.path = path_match.group("path").strip() or None
            return ScanState.BODY, draft

        if self.MERGE_MARKER in line:
            draft.is_merge = True
            return state, draft

        if line.startswith(self.METADATA_PREFIXES):
            self._read_metadata(draft, line)
            return ScanState.BODY, draft

        if not line:
            return ScanState.BODY, draft

        if self.LOG_NOISE_PATTERN.match(line):
            return state, draft

        draft.message_lines.append(line)
        return ScanState.MESSAGE, draft

    def _open(self, line: str) -> tuple[ScanState, _Draft | None]:
        """Start a new draft from a header line."""
        match = self.HEADER_PATTERN.match(line)
        if not match:
            logger.debug("skipping malformed revision header: %r", line)
            return ScanState.IDLE, None

        draft = _Draft(id=match.group("id"))
        for token in self.LABEL_PATTERN.findall(match.group("rest")):
            token = token.strip()
            hint = self.RESERVED_LABELS.get(token)
            if hint:
                setattr(draft, hint, True)
            else:
                draft.add_label(token)
        return ScanState.BODY, draft

    def _read_metadata(self, draft: _Draft, line: str) -> None:
        date_match = self.DATE_PATTERN.match(line)
        if date_match:
            draft.date = date_match.group("date").strip()
            return
        names_match = self.BRANCH_NAMES_PATTERN.match(line)
        if names_match:
            for name in names_match.group("names").split(","):
                draft.add_label(name.strip())

    @staticmethod
    def _finalize(draft: _Draft | None, emit: Callable[[RevisionRecord], None]) -> None:
        if draft is not None and draft.id:
            emit(draft.freeze())


def parse_history(text: str) -> list[RevisionRecord]:
    """Parse verbose history text into records, newest-first."""
    return HistoryParser().parse(text)
