"""Graph Builder - Constructs RevisionGraph from parsed history records.

This module provides the builder for turning the parser's newest-first
record list plus the current/head id sets into an oldest-first graph,
and the RevisionGraph container that answers ancestry queries.

Nodes live in an arena: a list indexed by small integer handles, with a
single id -> handle map built once per graph. Parent links are stored as
handles, so ancestor walks never repeat string lookups.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from alembic_graph.graph.mutations import BrokenReference
from alembic_graph.graph.parsers import RevisionRecord
from alembic_graph.graph.parsers.status import RevisionStatus
from alembic_graph.graph.RevisionNode import RevisionNode

logger = logging.getLogger(__name__)


@dataclass
class RevisionGraph:
    """Container for the complete revision graph.

    Nodes are ordered oldest-first. Edges are implicit: B is a child of
    A iff ``B.down_revision == A.id``. The graph is never updated in
    place; each refresh builds a new one.
    """

    # Internal storage (prefixed) - excluded from constructor
    _nodes: list[RevisionNode] = field(default_factory=list, init=False)
    _index: dict[str, int] = field(default_factory=dict, init=False, repr=False)
    _parents: list[int | None] = field(default_factory=list, init=False, repr=False)
    _children: list[list[int]] = field(default_factory=list, init=False, repr=False)
    _broken_references: list[BrokenReference] = field(default_factory=list, init=False)

    @classmethod
    def from_nodes(cls, nodes: Iterable[RevisionNode]) -> RevisionGraph:
        """Create a graph from oldest-first nodes, indexing parent handles.

        Later nodes with an id already seen are dropped.
        """
        graph = cls()
        for node in nodes:
            if node.id in graph._index:
                logger.debug("dropping duplicate revision %s", node.id)
                continue
            graph._index[node.id] = len(graph._nodes)
            graph._nodes.append(node)
            graph._children.append([])

        for handle, node in enumerate(graph._nodes):
            parent_handle = None
            if node.down_revision is not None:
                parent_handle = graph._index.get(node.down_revision)
                if parent_handle is None:
                    graph._broken_references.append(
                        BrokenReference(source_id=node.id, target_id=node.down_revision)
                    )
                else:
                    graph._children[parent_handle].append(handle)
            graph._parents.append(parent_handle)
        return graph

    # Iterator access
    def __iter__(self) -> Iterator[RevisionNode]:
        """Iterate nodes oldest-first."""
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, revision_id: object) -> bool:
        return revision_id in self._index

    def node_count(self) -> int:
        """Return total number of nodes in the graph."""
        return len(self._nodes)

    def nodes(self) -> list[RevisionNode]:
        """Return the oldest-first node list (a copy)."""
        return list(self._nodes)

    def find_by_id(self, revision_id: str) -> RevisionNode | None:
        """Find a node by full id or unique id prefix.

        Args:
            revision_id: Full id, or a prefix such as the 8-char short id.

        Returns:
            The matching node, or None if absent or ambiguous.
        """
        handle = self._resolve(revision_id)
        return None if handle is None else self._nodes[handle]

    def parent_of(self, revision_id: str) -> RevisionNode | None:
        """Return the parent node, or None for roots and missing parents."""
        handle = self._resolve(revision_id)
        if handle is None:
            return None
        parent = self._parents[handle]
        return None if parent is None else self._nodes[parent]

    def children_of(self, revision_id: str) -> list[RevisionNode]:
        """Return the nodes whose parent is revision_id, oldest-first."""
        handle = self._resolve(revision_id)
        if handle is None:
            return []
        return [self._nodes[child] for child in self._children[handle]]

    def iter_roots(self) -> Iterator[RevisionNode]:
        """Iterate revisions with no parent."""
        for node in self._nodes:
            if node.is_root:
                yield node

    def iter_heads(self) -> Iterator[RevisionNode]:
        """Iterate revisions flagged as heads by ``alembic heads``."""
        for node in self._nodes:
            if node.is_head:
                yield node

    def iter_current(self) -> Iterator[RevisionNode]:
        """Iterate revisions flagged as current by ``alembic current``."""
        for node in self._nodes:
            if node.is_current:
                yield node

    @property
    def broken_references(self) -> list[BrokenReference]:
        """Parent ids that do not resolve to a node in this graph."""
        return list(self._broken_references)

    # ─────────────────────────────────────────────────────────────────────────
    # Query API
    # ─────────────────────────────────────────────────────────────────────────

    def is_ancestor(self, ancestor_id: str, descendant_id: str) -> bool:
        """Check whether ancestor_id is reached by walking parents from descendant_id.

        At least one hop is required, so a revision is never its own
        ancestor. The walk stops as soon as it revisits a handle, so a
        malformed graph with a cycle yields False instead of looping.
        """
        target = self._index.get(ancestor_id)
        start = self._index.get(descendant_id)
        if target is None or start is None or target == start:
            return False

        visited = {start}
        handle = self._parents[start]
        while handle is not None:
            if handle == target:
                return True
            if handle in visited:
                logger.debug("cycle detected while walking parents of %s", descendant_id)
                return False
            visited.add(handle)
            handle = self._parents[handle]
        return False

    def is_applied(self, node: RevisionNode | str) -> bool:
        """Check whether a revision is current or an ancestor of a current revision."""
        if isinstance(node, str):
            found = self.find_by_id(node)
            if found is None:
                return False
            node = found
        if node.is_current:
            return True
        return any(self.is_ancestor(node.id, current.id) for current in self.iter_current())

    def applied_ids(self) -> set[str]:
        """Return the ids of every applied revision."""
        return {node.id for node in self._nodes if self.is_applied(node)}

    def _resolve(self, revision_id: str) -> int | None:
        handle = self._index.get(revision_id)
        if handle is not None or not revision_id:
            return handle
        matches = [h for rid, h in self._index.items() if rid.startswith(revision_id)]
        return matches[0] if len(matches) == 1 else None


class GraphBuilder:
    """Builder for constructing RevisionGraph from parsed records.

    Usage:
        builder = GraphBuilder()
        builder.add_records(parse_history(history_text))
        builder.set_status(resolve_status(current_text, heads_text))
        graph = builder.build()

    Records are added in parser order (newest-first); ``build()`` reverses
    them. Status comes only from the id sets: the ``(current)``/``(head)``
    hints on history header lines are ignored.
    """

    def __init__(self) -> None:
        self._records: list[RevisionRecord] = []
        self._status = RevisionStatus()

    def add_record(self, record: RevisionRecord) -> None:
        """Add one parsed record."""
        self._records.append(record)

    def add_records(self, records: Iterable[RevisionRecord]) -> None:
        """Add parsed records in parser order."""
        self._records.extend(records)

    def set_status(self, status: RevisionStatus) -> None:
        """Set the authoritative current/head id sets."""
        self._status = status

    def build(self) -> RevisionGraph:
        """Build the final RevisionGraph, oldest-first."""
        current, heads = self._status.current, self._status.heads
        seen: set[str] = set()
        nodes: list[RevisionNode] = []
        for record in self._records:
            # First occurrence in parser order wins
            if record.id in seen:
                logger.debug("dropping duplicate revision %s", record.id)
                continue
            seen.add(record.id)
            nodes.append(RevisionNode.from_record(record, current, heads))
        graph = RevisionGraph.from_nodes(reversed(nodes))
        logger.debug(
            "built revision graph: %d nodes, %d current, %d heads",
            graph.node_count(),
            sum(1 for _ in graph.iter_current()),
            sum(1 for _ in graph.iter_heads()),
        )
        return graph


def build_revision_graph(
    records: Iterable[RevisionRecord],
    current: Iterable[str] = (),
    heads: Iterable[str] = (),
) -> RevisionGraph:
    """Build a graph from newest-first records and status ids in one call."""
    builder = GraphBuilder()
    builder.add_records(records)
    builder.set_status(RevisionStatus(current=frozenset(current), heads=frozenset(heads)))
    return builder.build()
