"""
alembic_graph.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "history",
    "migrate",
    "serve",
    "set_parent",
    "show",
]
