"""Tests for graph serialization (JSON messages, text, CSV)."""

from __future__ import annotations

import csv
import io
import json

from alembic_graph.graph.serialize import (
    serialize_graph,
    serialize_node,
    serialize_nodes,
    to_csv,
    to_text,
)


class TestSerializeNode:
    def test_camel_case_keys(self, sample_graph):
        node = sample_graph.find_by_id("b2c3d4e5f6a7")

        data = serialize_node(node)

        assert data["id"] == "b2c3d4e5f6a7"
        assert data["shortId"] == "b2c3d4e5"
        assert data["message"] == "add orders table"
        assert data["branchLabels"] == ["feature"]
        assert data["downRevision"] == "0a1b2c3d4e5f"
        assert data["isCurrent"] is False
        assert data["isHead"] is False
        assert data["isMerge"] is False
        assert data["date"] == "2024-02-15 09:30:00.000000"
        assert "isApplied" not in data

    def test_applied_needs_graph(self, sample_graph):
        node = sample_graph.find_by_id("0a1b2c3d4e5f")

        assert serialize_node(node, sample_graph)["isApplied"] is True

    def test_root_has_null_parent(self, sample_graph):
        data = serialize_node(sample_graph.find_by_id("0a1b2c3d4e5f"))

        assert data["downRevision"] is None


class TestSerializeGraph:
    def test_nodes_oldest_first_with_applied(self, sample_graph):
        rows = serialize_nodes(sample_graph)

        assert [r["id"] for r in rows] == [n.id for n in sample_graph]
        assert [r["isApplied"] for r in rows] == [True, True, False, False]

    def test_graph_summary(self, sample_graph):
        data = serialize_graph(sample_graph)

        assert data["roots"] == ["0a1b2c3d4e5f"]
        assert data["heads"] == ["c3d4e5f6a7b8"]
        assert data["current"] == ["a1b2c3d4e5f6"]
        assert data["metadata"]["node_count"] == 4
        assert data["metadata"]["applied_count"] == 2
        assert data["metadata"]["broken_references"] == []

    def test_json_serializable(self, sample_graph):
        assert json.loads(json.dumps(serialize_graph(sample_graph)))["nodes"]


class TestTextAndCsv:
    def test_text_markers(self, sample_graph):
        lines = to_text(sample_graph).splitlines()

        assert len(lines) == 4
        assert lines[0].startswith("   +   <base> -> 0a1b2c3d")
        assert lines[1].startswith("@  +")
        assert lines[2].startswith("    ")
        assert "(feature)" in lines[2]
        assert lines[3].startswith(" *M ")
        assert lines[3].endswith("merge branches")

    def test_text_applied_only(self, sample_graph):
        lines = to_text(sample_graph, applied_only=True).splitlines()

        assert len(lines) == 2

    def test_empty_graph_text(self):
        from alembic_graph.graph.builder import build_revision_graph

        assert to_text(build_revision_graph([])) == ""

    def test_csv_rows(self, sample_graph):
        rows = list(csv.DictReader(io.StringIO(to_csv(sample_graph))))

        assert [r["id"] for r in rows] == [n.id for n in sample_graph]
        assert rows[0]["down_revision"] == ""
        assert rows[1]["is_current"] == "True"
        assert rows[2]["branch_labels"] == "feature"
