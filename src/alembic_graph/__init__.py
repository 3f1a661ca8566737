"""
alembic-graph - Alembic revision history as a navigable dependency graph

Reads the verbose output of the ``alembic`` CLI, recovers every revision
with its parent, merge and branch markers, and builds an in-memory graph
that answers ancestor and applied-status queries. A single revision's
parent can be rewritten in place once the user confirms it.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("alembic-graph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from alembic_graph.errors import AlembicCommandError, AlembicGraphError, DependencyChangeError
from alembic_graph.graph.builder import GraphBuilder, RevisionGraph
from alembic_graph.graph.RevisionNode import RevisionNode
from alembic_graph.graph.parsers import RevisionRecord

__all__ = [
    "__version__",
    "AlembicCommandError",
    "AlembicGraphError",
    "DependencyChangeError",
    "GraphBuilder",
    "RevisionGraph",
    "RevisionNode",
    "RevisionRecord",
]
