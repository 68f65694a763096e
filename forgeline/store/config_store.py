"""File-backed store for the user's projects and engine root.

The file is plain JSON.  Loading is lenient: a missing file yields the
defaults, an unreadable one logs a warning and yields the defaults, and
malformed project entries are dropped rather than rejected.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from forgeline.models.config import ProjectConfig, UserConfig

logger = logging.getLogger(__name__)

APP_FOLDER = "forgeline"
CONFIG_FILE = "config.json"


def default_config_dir() -> Path:
    """Platform config root: APPDATA, Application Support or XDG."""
    home = Path.home()
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else home / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else home / ".config"


def default_config_path(config_dir: Path | None = None) -> Path:
    return (config_dir or default_config_dir()) / APP_FOLDER / CONFIG_FILE


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_config(raw: Any) -> UserConfig:
    """Coerce arbitrary decoded JSON into a valid ``UserConfig``.

    Accepts both ``enginePath`` and ``engine_path`` keys.
    """
    if not isinstance(raw, dict):
        return UserConfig()

    projects: list[ProjectConfig] = []
    entries = raw.get("projects")
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, dict):
            continue
        name = _clean_str(entry.get("name"))
        path = _clean_str(entry.get("path"))
        if name and path:
            projects.append(ProjectConfig(name=name, path=path))

    engine_path = _clean_str(raw.get("enginePath", raw.get("engine_path"))) or None
    return UserConfig(projects=projects, engine_path=engine_path)


class ConfigStore:
    """Reads and writes ``UserConfig`` as JSON.

    Parameters
    ----------
    path:
        Config file location.  Defaults to the platform config directory.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = Path(path) if path is not None else default_config_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> UserConfig:
        try:
            contents = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return UserConfig()
        except OSError as exc:
            logger.warning("Failed to read config %s, using defaults: %s", self._path, exc)
            return UserConfig()

        try:
            raw = json.loads(contents)
        except json.JSONDecodeError as exc:
            logger.warning("Config %s is not valid JSON, using defaults: %s", self._path, exc)
            return UserConfig()
        return normalize_config(raw)

    def save(self, config: UserConfig) -> UserConfig:
        """Normalize and persist ``config``.  Returns what was written."""
        normalized = normalize_config(config.model_dump(by_alias=True))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            normalized.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        logger.debug("Saved config to %s", self._path)
        return normalized
