"""Default configuration values for alembic-graph."""

from __future__ import annotations

from typing import Any

CONFIG_FILENAME = ".alembic-graph.toml"

DEFAULT_CONFIG: dict[str, Any] = {
    "alembic": {
        # Interpreter that runs `<python> -m alembic`
        "python": "python",
        # Working directory for alembic, relative to the config file
        "directory": ".",
        "ini_path": "alembic.ini",
        # Each entry is passed as `-x <arg>`
        "custom_args": [],
        "timeout": 120,
    },
    "watch": {
        "patterns": ["**/versions/**/*.py", "**/alembic.ini", "**/env.py"],
        "debounce": 1.0,
        "interval": 1.0,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
    },
}
