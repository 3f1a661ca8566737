"""Graph Serialization - Export RevisionGraph to various formats.

This module provides functions to serialize RevisionGraph and RevisionNode
to JSON-compatible dicts (the shape the visualization consumes), plain
text and CSV.
"""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from alembic_graph.graph.builder import RevisionGraph
    from alembic_graph.graph.RevisionNode import RevisionNode


def serialize_node(node: RevisionNode, graph: RevisionGraph | None = None) -> dict[str, Any]:
    """Serialize a RevisionNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.
        graph: When given, ``isApplied`` is computed against it.

    Returns:
        Dict with camelCase keys, as pushed to the visualization.
    """
    result: dict[str, Any] = {
        "id": node.id,
        "shortId": node.short_id,
        "message": node.message,
        "branchLabels": list(node.branch_labels),
        "downRevision": node.down_revision,
        "isCurrent": node.is_current,
        "isHead": node.is_head,
        "isMerge": node.is_merge,
        "date": node.date,
        "path": node.path,
    }
    if graph is not None:
        result["isApplied"] = graph.is_applied(node)
    return result


def serialize_nodes(graph: RevisionGraph) -> list[dict[str, Any]]:
    """Serialize every node, oldest-first."""
    applied = graph.applied_ids()
    rows = []
    for node in graph:
        row = serialize_node(node)
        row["isApplied"] = node.id in applied
        rows.append(row)
    return rows


def serialize_graph(graph: RevisionGraph) -> dict[str, Any]:
    """Serialize a RevisionGraph to a JSON-compatible dict.

    Args:
        graph: The graph to serialize.

    Returns:
        Dict with nodes, roots, heads, current and metadata.
    """
    nodes = serialize_nodes(graph)
    return {
        "nodes": nodes,
        "roots": [node.id for node in graph.iter_roots()],
        "heads": [node.id for node in graph.iter_heads()],
        "current": [node.id for node in graph.iter_current()],
        "metadata": {
            "node_count": len(nodes),
            "applied_count": sum(1 for row in nodes if row["isApplied"]),
            "broken_references": [str(ref) for ref in graph.broken_references],
        },
    }


def node_markers(node: RevisionNode, applied: bool) -> str:
    """Four-column marker string: current, head, merge, applied."""
    return "".join(
        [
            "@" if node.is_current else " ",
            "*" if node.is_head else " ",
            "M" if node.is_merge else " ",
            "+" if applied else " ",
        ]
    )


def to_text(graph: RevisionGraph, applied_only: bool = False) -> str:
    """Render the graph as one line per revision, oldest-first.

    Markers: ``@`` current, ``*`` head, ``M`` merge, ``+`` applied.
    """
    applied = graph.applied_ids()
    lines = []
    for node in graph:
        is_applied = node.id in applied
        if applied_only and not is_applied:
            continue
        parent = node.down_revision[:8] if node.down_revision else "<base>"
        labels = f" ({', '.join(node.branch_labels)})" if node.branch_labels else ""
        summary = node.message.splitlines()[0] if node.message else ""
        lines.append(
            f"{node_markers(node, is_applied)} {parent:>8} -> {node.short_id}{labels}  {summary}"
        )
    if lines:
        lines.append("")
    return "\n".join(lines)


def to_csv(graph: RevisionGraph) -> str:
    """Generate a CSV export from graph.

    Args:
        graph: The RevisionGraph to export.

    Returns:
        CSV string with one row per revision, oldest-first.
    """
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL)

    writer.writerow(
        [
            "id",
            "down_revision",
            "message",
            "branch_labels",
            "is_current",
            "is_head",
            "is_merge",
            "is_applied",
            "date",
            "path",
        ]
    )

    applied = graph.applied_ids()
    for node in graph:
        writer.writerow(
            [
                node.id,
                node.down_revision or "",
                node.message,
                "; ".join(node.branch_labels),
                node.is_current,
                node.is_head,
                node.is_merge,
                node.id in applied,
                node.date or "",
                node.path or "",
            ]
        )

    return output.getvalue()


__all__ = [
    "serialize_node",
    "serialize_nodes",
    "serialize_graph",
    "to_text",
    "to_csv",
]
