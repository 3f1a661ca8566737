"""Graph module - Revision graph data structures.

Exports:
- RevisionNode: Immutable revision entity
- RevisionRecord: Parser output for one revision
- BrokenReference: Parent id that does not resolve (detection)
- DependencyPlan: Computed rewrite of a revision file
- MutationEntry / MutationLog: Applied parent changes

Note: RevisionGraph is in alembic_graph.graph.builder (use
graph.factory.build_graph() to construct from a live project)
"""

from alembic_graph.graph.mutations import (
    BrokenReference,
    DependencyPlan,
    MutationEntry,
    MutationLog,
)
from alembic_graph.graph.parsers import RevisionRecord
from alembic_graph.graph.RevisionNode import RevisionNode

__all__ = [
    "RevisionNode",
    "RevisionRecord",
    "BrokenReference",
    "DependencyPlan",
    "MutationEntry",
    "MutationLog",
]
