"""Status resolution from ``alembic current`` and ``alembic heads`` output.

Both commands print one revision per line, e.g.::

    INFO  [alembic.runtime.migration] Context impl PostgresqlImpl.
    27c6a30d7c24 (head)

Only membership matters downstream, so each listing becomes a frozenset.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from alembic_graph.graph.parsers.history import HistoryParser

# Same id shape as HistoryParser.HEADER_PATTERN. The sets are only used for
# membership, so a stray hex-looking word never creates a node.
HEX_TOKEN_PATTERN = re.compile(r"\b[0-9a-f]+\b")
# Branch labels and status markers are printed in parentheses
PARENTHESIZED_PATTERN = re.compile(r"\([^)]*\)")


@dataclass(frozen=True)
class RevisionStatus:
    """Authoritative current/head id sets for one refresh."""

    current: frozenset[str] = frozenset()
    heads: frozenset[str] = frozenset()


def parse_revision_set(text: str) -> frozenset[str]:
    """Collect every hex-looking token from a ``current``/``heads`` listing.

    Logger noise lines are skipped and parenthesized labels are ignored,
    so words such as ``cafe`` in a branch label never count as ids.
    """
    ids: set[str] = set()
    for raw in text.splitlines():
        line = raw.strip()
        if not line or HistoryParser.LOG_NOISE_PATTERN.match(line):
            continue
        ids.update(HEX_TOKEN_PATTERN.findall(PARENTHESIZED_PATTERN.sub(" ", line)))
    return frozenset(ids)


def resolve_status(current_text: str, heads_text: str) -> RevisionStatus:
    """Build the status sets from the two listings."""
    return RevisionStatus(
        current=parse_revision_set(current_text),
        heads=parse_revision_set(heads_text),
    )
