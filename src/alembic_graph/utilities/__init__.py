"""
alembic_graph.utilities - Process and file helpers
"""
