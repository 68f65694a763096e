"""Tests for the JSON config store and its normalization."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from forgeline.models.config import ProjectConfig, UserConfig
from forgeline.store.config_store import (
    APP_FOLDER,
    CONFIG_FILE,
    ConfigStore,
    default_config_path,
    normalize_config,
)


@pytest.fixture
def store(tmp_dir: Path) -> ConfigStore:
    return ConfigStore(tmp_dir / "config" / CONFIG_FILE)


class TestNormalizeConfig:
    def test_non_dict_yields_defaults(self):
        assert normalize_config(["not", "a", "dict"]) == UserConfig()
        assert normalize_config(None) == UserConfig()

    def test_invalid_projects_are_dropped(self):
        config = normalize_config(
            {
                "projects": [
                    {"name": "Lyra", "path": "/p/Lyra.uproject"},
                    {"name": "", "path": "/p/Empty.uproject"},
                    {"name": "NoPath"},
                    {"name": 7, "path": "/p/Seven.uproject"},
                    "garbage",
                ]
            }
        )
        assert config.projects == [ProjectConfig(name="Lyra", path="/p/Lyra.uproject")]

    def test_strings_are_trimmed(self):
        config = normalize_config(
            {
                "projects": [{"name": "  Lyra ", "path": " /p/Lyra.uproject\n"}],
                "enginePath": "  /engines/UE_5.3  ",
            }
        )
        assert config.projects[0].name == "Lyra"
        assert config.projects[0].path == "/p/Lyra.uproject"
        assert config.engine_path == "/engines/UE_5.3"

    def test_blank_engine_path_is_unset(self):
        assert normalize_config({"enginePath": "   "}).engine_path is None

    def test_snake_case_engine_path_accepted(self):
        assert normalize_config({"engine_path": "/e"}).engine_path == "/e"

    def test_projects_not_a_list(self):
        assert normalize_config({"projects": {"name": "x"}}).projects == []


class TestConfigStore:
    def test_missing_file_yields_defaults(self, store: ConfigStore):
        assert not store.path.exists()
        assert store.load() == UserConfig()

    def test_invalid_json_yields_defaults(self, store: ConfigStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        assert store.load() == UserConfig()

    def test_save_then_load(self, store: ConfigStore):
        config = UserConfig(
            projects=[ProjectConfig(name="Lyra", path="/p/Lyra.uproject")],
            engine_path="/engines/UE_5.3",
        )
        saved = store.save(config)
        assert saved == config
        assert store.load() == config

    def test_file_uses_camel_case_keys(self, store: ConfigStore):
        store.save(UserConfig(engine_path="/engines/UE_5.3"))
        raw = json.loads(store.path.read_text())
        assert raw == {"projects": [], "enginePath": "/engines/UE_5.3"}

    def test_save_normalizes(self, store: ConfigStore):
        config = UserConfig(projects=[ProjectConfig(name=" Lyra ", path=" /p/L.uproject ")])
        saved = store.save(config)
        assert saved.projects[0].name == "Lyra"
        assert store.load().projects[0].path == "/p/L.uproject"

    def test_save_creates_parent_directories(self, tmp_dir: Path):
        store = ConfigStore(tmp_dir / "a" / "b" / CONFIG_FILE)
        store.save(UserConfig())
        assert store.path.exists()


class TestDefaultPath:
    def test_uses_app_folder(self, tmp_dir: Path):
        path = default_config_path(tmp_dir)
        assert path == tmp_dir / APP_FOLDER / CONFIG_FILE

    def test_default_store_path(self):
        assert ConfigStore().path.name == CONFIG_FILE
