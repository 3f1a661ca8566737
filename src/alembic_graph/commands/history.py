"""
alembic_graph.commands.history - Print the revision graph.

Builds the graph from the live project and prints it oldest-first:
- text: one line per revision with status markers
- json: the serialized graph
- csv: one row per revision
"""

from __future__ import annotations

import argparse
import json

from alembic_graph.graph.serialize import serialize_graph, to_csv, to_text


def run(args: argparse.Namespace) -> int:
    """Run the history command."""
    from alembic_graph.graph.factory import build_graph

    graph = build_graph(
        config_path=getattr(args, "config", None),
        start_path=getattr(args, "directory", None),
    )

    output_format = "json" if getattr(args, "json", False) else args.format
    applied_only = getattr(args, "applied", False)

    if output_format == "json":
        data = serialize_graph(graph)
        if applied_only:
            data["nodes"] = [row for row in data["nodes"] if row["isApplied"]]
        print(json.dumps(data, indent=2))
    elif output_format == "csv":
        print(to_csv(graph), end="")
    else:
        if not len(graph):
            if not getattr(args, "quiet", False):
                print("No revisions found.")
            return 0
        print(to_text(graph, applied_only=applied_only), end="")
        if not getattr(args, "quiet", False):
            for ref in graph.broken_references:
                print(f"Warning: {ref}")
    return 0
