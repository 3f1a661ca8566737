"""alembic_graph.server - Flask message server for the revision graph.

Exposes the revision graph and the migration commands over HTTP/JSON
for an interactive graph view, with a watcher that refreshes the graph
when revision files change.
"""

from alembic_graph.server.app import create_app

__all__ = ["create_app"]
