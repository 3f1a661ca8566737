"""Graph Factory - Shared utility for building RevisionGraph from alembic.

This module provides a single entry point for all commands to build a
RevisionGraph from a project's alembic CLI. Commands should use this
instead of running alembic and the parsers themselves.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from alembic_graph.config import get_config
from alembic_graph.graph.builder import GraphBuilder, RevisionGraph
from alembic_graph.graph.parsers import parse_history, resolve_status
from alembic_graph.utilities.alembic import AlembicRunner

logger = logging.getLogger(__name__)


def get_runner(
    config: dict[str, Any] | None = None,
    config_path: Path | None = None,
    start_path: Path | None = None,
) -> AlembicRunner:
    """Create an AlembicRunner from config, loading it if not given."""
    if config is None:
        config = get_config(config_path, start_path)
    return AlembicRunner.from_config(config)


def build_graph_from_text(history_text: str, current_text: str, heads_text: str) -> RevisionGraph:
    """Build a RevisionGraph from the three captured alembic outputs.

    Pure function: no processes, no files.
    """
    builder = GraphBuilder()
    builder.add_records(parse_history(history_text))
    builder.set_status(resolve_status(current_text, heads_text))
    return builder.build()


def build_graph(
    config: dict[str, Any] | None = None,
    config_path: Path | None = None,
    runner: AlembicRunner | None = None,
    start_path: Path | None = None,
) -> RevisionGraph:
    """Build a RevisionGraph by running alembic.

    Runs ``history``, ``current`` and ``heads`` in sequence. If any of
    them fails the AlembicCommandError propagates and no graph is built.

    Args:
        config: Pre-loaded config dict (optional).
        config_path: Path to config file (optional).
        runner: Pre-built runner (optional, wins over config).
        start_path: Directory to search for a config file from (optional).

    Returns:
        Complete RevisionGraph, oldest-first.

    Priority:
        runner > config > config_path > discovered config > defaults
    """
    if runner is None:
        runner = get_runner(config, config_path, start_path)

    history_text = runner.history()
    current_text = runner.current()
    heads_text = runner.heads()

    graph = build_graph_from_text(history_text, current_text, heads_text)
    logger.info("loaded %d revisions from %s", graph.node_count(), runner.directory)
    return graph
