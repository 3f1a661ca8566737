"""
alembic_graph.commands.config_cmd - Inspect configuration.

- `alembic-graph config show` - Print the effective configuration
- `alembic-graph config path` - Print the config file in use
"""

from __future__ import annotations

import argparse
import json
import sys

import tomlkit

from alembic_graph.config import CONFIG_FILENAME, get_config


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    config = get_config(getattr(args, "config", None), getattr(args, "directory", None))
    action = getattr(args, "config_action", None)

    if action == "show":
        return _show(config, args)
    elif action == "path":
        return _path(config)
    else:
        print("Usage: alembic-graph config <show|path>", file=sys.stderr)
        return 1


def _show(config: dict, args: argparse.Namespace) -> int:
    data = {key: value for key, value in config.items() if not key.startswith("_")}
    if getattr(args, "json", False):
        print(json.dumps(data, indent=2))
    else:
        print(tomlkit.dumps(data), end="")
    return 0


def _path(config: dict) -> int:
    path = config.get("_config_path")
    if path is None:
        print(f"No {CONFIG_FILENAME} found (using defaults)", file=sys.stderr)
        return 1
    print(path)
    return 0
