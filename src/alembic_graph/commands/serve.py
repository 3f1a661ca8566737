"""
alembic_graph.commands.serve - Start the revision message server.
"""

from __future__ import annotations

import argparse
import logging

from alembic_graph.config import get_config

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> int:
    """Start the Flask server with the refresh watcher."""
    from alembic_graph.server import create_app

    config = get_config(getattr(args, "config", None), getattr(args, "directory", None))
    host = args.host or config["server"]["host"]
    port = args.port or int(config["server"]["port"])
    watch = not getattr(args, "no_watch", False)

    print(
        f"""
======================================
  alembic-graph Server
======================================

Project: {config["alembic"]["directory"]}
Server:  http://{host}:{port}
Watch:   {"on" if watch else "off"}

Press Ctrl+C to stop
"""
    )

    app = create_app(config, watch=watch)
    try:
        app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        watcher = app.extensions.get("revision_watcher")
        if watcher is not None:
            watcher.stop()
    logger.debug("server on %s:%d stopped", host, port)
    return 0
