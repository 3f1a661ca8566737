"""
alembic_graph.config - Configuration loading and defaults

Configuration lives in ``.alembic-graph.toml``, searched for in the start
directory and its parents. Values are merged over DEFAULT_CONFIG, then
overridden by ``ALEMBIC_GRAPH_<SECTION>_<KEY>`` environment variables.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

import tomlkit

from alembic_graph.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG

logger = logging.getLogger(__name__)

ENV_PREFIX = "ALEMBIC_GRAPH_"


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a round-trip preserving tomlkit document."""
    return tomlkit.parse(content)


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML text into plain Python dicts and lists."""
    return parse_toml_document(content).unwrap()


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find ``.alembic-graph.toml`` in start_path or any parent directory.

    Args:
        start_path: Directory to start from (default: current directory).

    Returns:
        Path to the config file, or None if none exists.
    """
    current = (start_path or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into a copy of base.

    Nested dicts are merged key by key; any other value in override
    replaces the one in base.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON arrays and objects are decoded, ``true``/``false`` become booleans,
    anything else (including malformed JSON) is returned unchanged.
    """
    stripped = value.strip()
    if stripped.lower() == "true":
        return True
    if stripped.lower() == "false":
        return False
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``ALEMBIC_GRAPH_<SECTION>_<KEY>`` overrides in place.

    The first segment after the prefix names the section; the remainder,
    lowercased, is the key (``ALEMBIC_GRAPH_ALEMBIC_INI_PATH`` sets
    ``alembic.ini_path``).
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, _, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not key:
            continue
        config.setdefault(section, {})[key] = _try_parse_env_value(raw)
        logger.debug("config override from %s", name)
    return config


def load_config(config_path: Path) -> dict[str, Any]:
    """Load a config file and merge it over the defaults.

    Raises:
        FileNotFoundError: If config_path does not exist.
        tomlkit.exceptions.ParseError: If the file is not valid TOML.
    """
    content = Path(config_path).read_text(encoding="utf-8")
    return merge_configs(DEFAULT_CONFIG, parse_toml(content))


def get_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
) -> dict[str, Any]:
    """Resolve the effective configuration.

    An explicit config_path wins; otherwise the nearest config file above
    start_path is used, and the defaults when there is none. Environment
    overrides are applied last. The relative ``alembic.directory`` is
    resolved against the config file's directory and stored back as an
    absolute path, and ``_config_path`` records which file was used.
    """
    path = Path(config_path) if config_path else find_config_file(start_path)
    if path is not None:
        config = load_config(path)
        base_dir = path.resolve().parent
        logger.debug("loaded config from %s", path)
    else:
        config = copy.deepcopy(DEFAULT_CONFIG)
        base_dir = (start_path or Path.cwd()).resolve()

    config = _apply_env_overrides(config)

    directory = Path(str(config["alembic"].get("directory", ".")))
    if not directory.is_absolute():
        directory = base_dir / directory
    config["alembic"]["directory"] = str(directory.resolve())
    config["_config_path"] = str(path) if path is not None else None
    return config


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "parse_toml",
    "parse_toml_document",
]
