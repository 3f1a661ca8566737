"""
alembic_graph.commands.show - Show one revision and its neighbours.
"""

from __future__ import annotations

import argparse
import json
import sys

from alembic_graph.graph.serialize import serialize_node


def run(args: argparse.Namespace) -> int:
    """Run the show command."""
    from alembic_graph.graph.factory import build_graph

    graph = build_graph(
        config_path=getattr(args, "config", None),
        start_path=getattr(args, "directory", None),
    )

    node = graph.find_by_id(args.revision)
    if node is None:
        print(f"Warning: Revision {args.revision} not found", file=sys.stderr)
        return 1

    children = graph.children_of(node.id)
    applied = graph.is_applied(node)

    if getattr(args, "json", False):
        data = serialize_node(node, graph)
        data["children"] = [child.id for child in children]
        print(json.dumps(data, indent=2))
        return 0

    status = [
        label
        for label, flag in (
            ("current", node.is_current),
            ("head", node.is_head),
            ("merge", node.is_merge),
            ("applied", applied),
        )
        if flag
    ]

    print(f"Revision: {node.id}")
    print(f"Parent:   {node.down_revision or '<base>'}")
    if children:
        print(f"Children: {', '.join(child.id for child in children)}")
    if node.branch_labels:
        print(f"Branches: {', '.join(node.branch_labels)}")
    if status:
        print(f"Status:   {', '.join(status)}")
    if node.date:
        print(f"Date:     {node.date}")
    if node.path:
        print(f"Path:     {node.path}")
    if node.message:
        print()
        for line in node.message.splitlines():
            print(f"    {line}")
    return 0
