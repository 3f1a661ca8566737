"""alembic_graph.server.app - Flask app factory and revision message API.

Serves the revision graph as the JSON messages the visualization
consumes, and accepts the inbound commands it sends (open, upgrade,
downgrade, stamp, dependency change). Every command is followed by a
fresh rebuild of the graph.

State pattern:
    _state = {"graph": graph, "config": config, "runner": runner,
              "build_time": time.time(), "last_error": None,
              "mutations": MutationLog()}

Refreshes and commands hold one lock, so at most one of them touches
alembic or the revision files at a time.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from alembic_graph.errors import AlembicCommandError, DependencyChangeError
from alembic_graph.graph.builder import RevisionGraph
from alembic_graph.graph.factory import build_graph
from alembic_graph.graph.mutations import (
    MutationLog,
    check_dependency_change,
    dependency_warning,
    is_root_sentinel,
)
from alembic_graph.graph.serialize import serialize_node, serialize_nodes
from alembic_graph.utilities.alembic import AlembicRunner, downgrade_warning, stamp_warning
from alembic_graph.utilities.file_mutations import change_revision_parent, locate_revision_file

logger = logging.getLogger(__name__)


def create_app(
    config: dict[str, Any],
    runner: AlembicRunner | None = None,
    graph: RevisionGraph | None = None,
    watch: bool = False,
) -> Flask:
    """Create the Flask application with the revision API routes.

    Args:
        config: alembic-graph configuration dict.
        runner: Alembic runner (built from config when omitted).
        graph: Pre-built graph; built on first request when omitted.
        watch: Start a RevisionWatcher that refreshes on file changes.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    _state: dict[str, Any] = {
        "graph": graph,
        "config": config,
        "runner": runner or AlembicRunner.from_config(config),
        "build_time": time.time() if graph is not None else None,
        "last_error": None,
        "mutations": MutationLog(),
    }
    _lock = threading.RLock()

    def _refresh() -> dict[str, Any]:
        """Rebuild the graph. Raises AlembicCommandError, keeping the old graph."""
        with _lock:
            try:
                new_graph = build_graph(runner=_state["runner"])
            except AlembicCommandError as e:
                _state["last_error"] = str(e)
                logger.error("refresh failed: %s", e)
                raise
            _state["graph"] = new_graph
            _state["build_time"] = time.time()
            _state["last_error"] = None
            return {
                "type": "refreshComplete",
                "timestamp": datetime.now().strftime("%H:%M:%S"),
                "count": new_graph.node_count(),
            }

    def _graph() -> RevisionGraph:
        with _lock:
            if _state["graph"] is None:
                _refresh()
            return _state["graph"]

    def _error_message(e: Exception, status: int = 502):
        return jsonify({"type": "error", "data": str(e)}), status

    def _body() -> dict[str, Any]:
        return request.get_json(silent=True) or {}

    def _confirmation_required(warning: str):
        return (
            jsonify({"success": False, "confirmRequired": True, "warning": warning}),
            409,
        )

    def _finish(message: str) -> Any:
        """Refresh after a command and report both outcomes."""
        try:
            refresh = _refresh()
        except AlembicCommandError as e:
            return jsonify(
                {"success": True, "message": message, "refresh": {"type": "error", "data": str(e)}}
            )
        return jsonify({"success": True, "message": message, "refresh": refresh})

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        """GET / - Endpoint listing."""
        return jsonify(
            {
                "name": "alembic-graph",
                "endpoints": sorted(
                    str(rule) for rule in app.url_map.iter_rules() if str(rule).startswith("/api/")
                ),
            }
        )

    @app.route("/api/revisions")
    def api_revisions():
        """GET /api/revisions - All revisions, oldest-first."""
        try:
            g = _graph()
        except AlembicCommandError as e:
            return _error_message(e)
        return jsonify({"type": "updateRevisions", "data": serialize_nodes(g)})

    @app.route("/api/revision/<revision_id>")
    def api_revision(revision_id: str):
        """GET /api/revision/<id> - One revision with parent and children."""
        try:
            g = _graph()
        except AlembicCommandError as e:
            return _error_message(e)
        node = g.find_by_id(revision_id)
        if node is None:
            return jsonify({"success": False, "error": f"Revision {revision_id} not found"}), 404
        result = serialize_node(node, g)
        parent = g.parent_of(node.id)
        result["parent"] = parent.id if parent else None
        result["children"] = [child.id for child in g.children_of(node.id)]
        return jsonify(result)

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Graph counts and refresh state."""
        g = _state["graph"]
        return jsonify(
            {
                "node_count": g.node_count() if g is not None else 0,
                "current": [n.id for n in g.iter_current()] if g is not None else [],
                "heads": [n.id for n in g.iter_heads()] if g is not None else [],
                "broken_references": (
                    [str(ref) for ref in g.broken_references] if g is not None else []
                ),
                "build_time": _state["build_time"],
                "last_error": _state["last_error"],
                "mutation_count": len(_state["mutations"]),
                "watching": "revision_watcher" in app.extensions,
            }
        )

    @app.route("/api/mutations")
    def api_mutations():
        """GET /api/mutations - Dependency changes applied by this server."""
        return jsonify(
            [
                {
                    "id": entry.id,
                    "operation": entry.operation,
                    "targetId": entry.target_id,
                    "before": entry.before_state,
                    "after": entry.after_state,
                    "timestamp": entry.timestamp.isoformat(),
                }
                for entry in _state["mutations"].iter_entries()
            ]
        )

    # ─────────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/refresh", methods=["POST"])
    def api_refresh():
        """POST /api/refresh - Rebuild the graph from alembic."""
        try:
            return jsonify(_refresh())
        except AlembicCommandError as e:
            return _error_message(e)

    @app.route("/api/open", methods=["POST"])
    def api_open():
        """POST /api/open - Source file of a revision."""
        revision_id = _body().get("revisionId")
        if not revision_id:
            return jsonify({"success": False, "error": "revisionId required"}), 400
        try:
            g = _graph()
        except AlembicCommandError as e:
            return _error_message(e)
        with _lock:
            path = locate_revision_file(g, _state["runner"], revision_id)
        if path is None or not path.exists():
            return (
                jsonify(
                    {"success": False, "error": f"Could not find file for revision {revision_id}"}
                ),
                404,
            )
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            return jsonify({"success": False, "error": f"cannot read file: {e}"}), 500
        return jsonify(
            {"success": True, "revisionId": revision_id, "path": str(path), "content": content}
        )

    @app.route("/api/upgrade", methods=["POST"])
    def api_upgrade():
        """POST /api/upgrade - Upgrade to a revision (default: head)."""
        target = _body().get("revisionId") or "head"
        with _lock:
            try:
                _state["runner"].upgrade(target)
            except AlembicCommandError as e:
                return jsonify({"success": False, "error": f"Failed to upgrade: {e}"}), 502
            return _finish(f"Successfully upgraded to revision {target}")

    @app.route("/api/downgrade", methods=["POST"])
    def api_downgrade():
        """POST /api/downgrade - Downgrade to a revision (needs confirm)."""
        body = _body()
        target = body.get("revisionId")
        if not target:
            return jsonify({"success": False, "error": "revisionId required"}), 400
        if body.get("confirm") is not True:
            return _confirmation_required(downgrade_warning(target))
        with _lock:
            try:
                _state["runner"].downgrade(target)
            except AlembicCommandError as e:
                return jsonify({"success": False, "error": f"Failed to downgrade: {e}"}), 502
            return _finish(f"Successfully downgraded to revision {target}")

    @app.route("/api/stamp", methods=["POST"])
    def api_stamp():
        """POST /api/stamp - Mark a revision applied (needs confirm)."""
        body = _body()
        target = body.get("revisionId")
        if not target:
            return jsonify({"success": False, "error": "revisionId required"}), 400
        if body.get("confirm") is not True:
            return _confirmation_required(stamp_warning(target))
        with _lock:
            try:
                _state["runner"].stamp(target)
            except AlembicCommandError as e:
                return jsonify({"success": False, "error": f"Failed to stamp revision: {e}"}), 502
            return _finish(f"Successfully stamped revision {target}")

    @app.route("/api/dependency", methods=["POST"])
    def api_dependency():
        """POST /api/dependency - Change a revision's parent (needs confirm).

        Body: {"revisionId": ..., "newParent": <id or "<base>">, "confirm": true}
        """
        body = _body()
        target_id = body.get("revisionId")
        if not target_id or "newParent" not in body:
            return jsonify({"success": False, "error": "revisionId and newParent required"}), 400
        new_parent = body.get("newParent")
        if new_parent is not None and not isinstance(new_parent, str):
            return jsonify({"success": False, "error": "newParent must be a string or null"}), 400
        if is_root_sentinel(new_parent):
            new_parent = None
        with _lock:
            try:
                g = _graph()
            except AlembicCommandError as e:
                return _error_message(e)
            try:
                check_dependency_change(g, target_id, new_parent)
            except DependencyChangeError as e:
                return jsonify({"success": False, "error": str(e)}), 404
            if body.get("confirm") is not True:
                return _confirmation_required(dependency_warning(target_id, new_parent))
            try:
                entry = change_revision_parent(
                    g, _state["runner"], target_id, new_parent, log=_state["mutations"]
                )
            except DependencyChangeError as e:
                return jsonify({"success": False, "error": str(e)}), 404
            if entry is None:
                return jsonify({"success": True, "message": f"No changes for revision {target_id}"})
            return _finish(f"Successfully modified dependency for revision {target_id}")

    if watch:
        from alembic_graph.server.watcher import RevisionWatcher

        def _refresh_quietly() -> None:
            try:
                _refresh()
            except AlembicCommandError:
                # Recorded in last_error by _refresh
                pass

        watcher = RevisionWatcher.from_config(config, on_change=_refresh_quietly)
        watcher.start()
        app.extensions["revision_watcher"] = watcher

    return app
