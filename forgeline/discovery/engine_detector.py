"""Unreal Engine install discovery.

Candidates come from the usual install directories and, on Windows, from
the Epic launcher's manifests and ``LauncherInstalled.dat``.  A candidate
counts as an engine root when it has ``Engine/Binaries`` or
``Engine/Build``.  Any single unreadable candidate is logged and skipped.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, NamedTuple

from forgeline.models.config import EngineInstall

logger = logging.getLogger(__name__)

# Directory names that live next to engine installs but are not engines
SKIP_DIRECTORY_NAMES = frozenset(
    {
        "launcher",
        "epicgameslauncher",
        "epic games launcher",
        "epic online services",
        "directxredist",
        "vcredist",
    }
)

_UE_VERSION_RE = re.compile(r"UE[_-]([0-9]+(?:\.[0-9]+)*)", re.IGNORECASE)
_GENERIC_VERSION_RE = re.compile(r"([0-9]+(?:\.[0-9]+)*)")
_VERSION_PAD = 6


class Candidate(NamedTuple):
    name: str
    path: Path
    version_hint: str | None = None


# ---------------------------------------------------------------------------
# Platform locations
# ---------------------------------------------------------------------------


def _program_data() -> Path:
    return Path(os.environ.get("ProgramData", "C:\\ProgramData"))


def default_base_dirs() -> list[Path]:
    if sys.platform == "win32":
        bases = [os.environ.get("PROGRAMFILES"), os.environ.get("PROGRAMFILES(X86)")]
        return [Path(base) / "Epic Games" for base in bases if base]
    home = Path.home()
    if sys.platform == "darwin":
        return [Path("/Users/Shared/Epic Games"), home / "Epic Games"]
    return [
        home / "Epic Games",
        home / ".local" / "share" / "Epic Games",
        Path("/opt/Epic Games"),
    ]


def default_manifest_dir() -> Path | None:
    if sys.platform != "win32":
        return None
    return _program_data() / "Epic" / "EpicGamesLauncher" / "Data" / "Manifests"


def default_launcher_files() -> list[Path]:
    if sys.platform != "win32":
        return []
    epic = _program_data() / "Epic"
    return [
        epic / "UnrealEngineLauncher" / "LauncherInstalled.dat",
        epic / "EpicGamesLauncher" / "LauncherInstalled.dat",
    ]


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def parse_version_from_name(name: str) -> str | None:
    """Extract ``5.3`` from names like ``UE_5.3`` or ``Unreal 5.3``."""
    match = _UE_VERSION_RE.search(name) or _GENERIC_VERSION_RE.search(name)
    return match.group(1) if match else None


def _version_key(version: str | None) -> tuple[int, tuple[int, ...]]:
    # Known versions sort before unknown ones; newer first within known.
    if not version:
        return (1, ())
    parts = [-int(part) for part in version.split(".") if part.isdigit()]
    parts += [0] * (_VERSION_PAD - len(parts))
    return (0, tuple(parts))


def format_label(name: str, version: str | None) -> str:
    if version:
        return f"Unreal Engine {version}"
    if name:
        return f"Unreal Engine ({name})"
    return "Unreal Engine"


def should_skip_directory(name: str) -> bool:
    return name.lower() in SKIP_DIRECTORY_NAMES


def is_engine_root(candidate: Path) -> bool:
    engine_dir = candidate / "Engine"
    if not engine_dir.is_dir():
        return False
    return (engine_dir / "Binaries").is_dir() or (engine_dir / "Build").is_dir()


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None


def _candidate_from_record(record: dict[str, Any]) -> Candidate | None:
    location = record.get("InstallLocation")
    if not location:
        return None
    name = record.get("DisplayName") or record.get("AppName") or Path(location).name
    version = record.get("AppVersion") or parse_version_from_name(name)
    return Candidate(name=name, path=Path(location), version_hint=version)


# ---------------------------------------------------------------------------
# Candidate sources
# ---------------------------------------------------------------------------


def list_directory_candidates(base_dir: Path) -> list[Candidate]:
    if not base_dir.is_dir():
        return []
    try:
        entries = sorted(base_dir.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        logger.warning("Failed to list candidates in %s: %s", base_dir, exc)
        return []
    return [
        Candidate(entry.name, entry, parse_version_from_name(entry.name))
        for entry in entries
        if entry.is_dir() and not should_skip_directory(entry.name)
    ]


def list_manifest_candidates(manifest_dir: Path | None) -> list[Candidate]:
    if manifest_dir is None or not manifest_dir.is_dir():
        return []
    candidates: list[Candidate] = []
    for item in sorted(manifest_dir.glob("*.item")):
        data = _read_json(item)
        if not isinstance(data, dict):
            logger.warning("Skipping unreadable manifest %s", item)
            continue
        candidate = _candidate_from_record(data)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def list_launcher_candidates(launcher_files: list[Path]) -> list[Candidate]:
    """Read the first launcher file that holds an ``InstallationList``."""
    for launcher_file in launcher_files:
        data = _read_json(launcher_file)
        if not isinstance(data, dict) or not isinstance(data.get("InstallationList"), list):
            continue
        return [
            candidate
            for record in data["InstallationList"]
            if isinstance(record, dict)
            and (candidate := _candidate_from_record(record)) is not None
        ]
    return []


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def detect_engine_installs(
    base_dirs: list[Path] | None = None,
    *,
    manifest_dir: Path | None = None,
    launcher_files: list[Path] | None = None,
) -> list[EngineInstall]:
    """Find engine installs, newest version first.

    Parameters default to the current platform's standard locations.
    """
    if base_dirs is None:
        base_dirs = default_base_dirs()
        manifest_dir = manifest_dir or default_manifest_dir()
        launcher_files = launcher_files if launcher_files is not None else default_launcher_files()

    candidates: list[Candidate] = []
    for base_dir in base_dirs:
        candidates.extend(list_directory_candidates(base_dir))
    candidates.extend(list_manifest_candidates(manifest_dir))
    candidates.extend(list_launcher_candidates(launcher_files or []))

    installs: list[EngineInstall] = []
    seen: set[str] = set()
    for candidate in candidates:
        if should_skip_directory(candidate.path.name):
            continue
        normalized = os.path.normpath(str(candidate.path))
        if normalized in seen:
            continue
        try:
            if not is_engine_root(candidate.path):
                continue
        except OSError as exc:
            logger.warning("Failed to validate candidate %s: %s", candidate.path, exc)
            continue

        version = candidate.version_hint or parse_version_from_name(candidate.name)
        installs.append(
            EngineInstall(
                id=normalized,
                name=format_label(candidate.name, version),
                path=normalized,
                version=version,
            )
        )
        seen.add(normalized)

    installs.sort(key=lambda install: _version_key(install.version))
    logger.info("Engine detection found %d installation(s)", len(installs))
    return installs
