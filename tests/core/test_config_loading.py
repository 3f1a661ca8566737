"""Tests for configuration discovery, merging and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from alembic_graph.config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    parse_toml,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove any ALEMBIC_GRAPH_* variables from the environment."""
    import os

    for name in list(os.environ):
        if name.startswith("ALEMBIC_GRAPH_"):
            monkeypatch.delenv(name)


class TestParseToml:
    def test_returns_plain_dicts(self):
        data = parse_toml('[alembic]\nini_path = "db/alembic.ini"\ncustom_args = ["a=1"]\n')

        assert data == {"alembic": {"ini_path": "db/alembic.ini", "custom_args": ["a=1"]}}
        assert type(data["alembic"]) is dict


class TestFindConfigFile:
    def test_in_start_directory(self, tmp_path):
        config = tmp_path / CONFIG_FILENAME
        config.write_text("", encoding="utf-8")

        assert find_config_file(tmp_path) == config.resolve()

    def test_in_parent_directory(self, tmp_path):
        config = tmp_path / CONFIG_FILENAME
        config.write_text("", encoding="utf-8")
        nested = tmp_path / "backend" / "alembic"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == config.resolve()


class TestMergeConfigs:
    def test_deep_merge(self):
        merged = merge_configs(
            {"alembic": {"python": "python", "timeout": 120}, "server": {"port": 1}},
            {"alembic": {"timeout": 5}},
        )

        assert merged == {"alembic": {"python": "python", "timeout": 5}, "server": {"port": 1}}

    def test_base_is_not_modified(self):
        base = {"watch": {"patterns": ["a"]}}

        merge_configs(base, {"watch": {"patterns": ["b"]}})

        assert base == {"watch": {"patterns": ["a"]}}


class TestEnvOverrides:
    def test_try_parse_values(self):
        assert _try_parse_env_value("true") is True
        assert _try_parse_env_value("FALSE") is False
        assert _try_parse_env_value('["a=1", "b=2"]') == ["a=1", "b=2"]
        assert _try_parse_env_value("[not json") == "[not json"
        assert _try_parse_env_value("python3.12") == "python3.12"

    def test_section_and_key(self, monkeypatch):
        monkeypatch.setenv("ALEMBIC_GRAPH_ALEMBIC_INI_PATH", "db/alembic.ini")
        monkeypatch.setenv("ALEMBIC_GRAPH_ALEMBIC_CUSTOM_ARGS", '["tenant=acme"]')

        config = _apply_env_overrides({"alembic": {}})

        assert config["alembic"]["ini_path"] == "db/alembic.ini"
        assert config["alembic"]["custom_args"] == ["tenant=acme"]

    def test_new_section_is_created(self, monkeypatch):
        monkeypatch.setenv("ALEMBIC_GRAPH_SERVER_HOST", "0.0.0.0")

        assert _apply_env_overrides({})["server"]["host"] == "0.0.0.0"


class TestGetConfig:
    def test_defaults_without_file(self, tmp_path):
        config = get_config(start_path=tmp_path)

        assert config["_config_path"] is None
        assert config["alembic"]["ini_path"] == DEFAULT_CONFIG["alembic"]["ini_path"]
        assert config["alembic"]["directory"] == str(tmp_path.resolve())

    def test_file_values_and_relative_directory(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(
            '[alembic]\ndirectory = "backend"\ntimeout = 30\n\n[server]\nport = 8000\n',
            encoding="utf-8",
        )
        (tmp_path / "backend").mkdir()

        config = get_config(start_path=tmp_path)

        assert config["alembic"]["directory"] == str((tmp_path / "backend").resolve())
        assert config["alembic"]["timeout"] == 30
        assert config["alembic"]["python"] == "python"
        assert config["server"]["port"] == 8000
        assert Path(config["_config_path"]).name == CONFIG_FILENAME

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[alembic]\nini_path = "other.ini"\n', encoding="utf-8")

        config = get_config(config_path=path)

        assert config["alembic"]["ini_path"] == "other.ini"
        assert config["alembic"]["directory"] == str(tmp_path.resolve())

    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        (tmp_path / CONFIG_FILENAME).write_text(
            '[alembic]\nini_path = "file.ini"\n', encoding="utf-8"
        )
        monkeypatch.setenv("ALEMBIC_GRAPH_ALEMBIC_INI_PATH", "env.ini")

        config = get_config(start_path=tmp_path)

        assert config["alembic"]["ini_path"] == "env.ini"

    def test_defaults_are_not_mutated(self, tmp_path):
        get_config(start_path=tmp_path)

        assert DEFAULT_CONFIG["alembic"]["directory"] == "."

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")
