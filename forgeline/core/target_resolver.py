"""Build target resolution and build tool invocation.

Pure lookups: the only filesystem access is listing the project's
``Source`` directory.  A project without a discoverable editor target is
not an error; it falls back to ``<ProjectName>Editor``.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from forgeline.config import ForgelineSettings

logger = logging.getLogger(__name__)

EDITOR_TARGET_SUFFIX = "Editor.Target.cs"
TARGET_FILE_SUFFIX = ".Target.cs"
SOURCE_DIR_NAME = "Source"


class BuildInvocation(BaseModel):
    """A fully resolved external build command."""

    model_config = ConfigDict(frozen=True)

    executable: str
    args: list[str] = []
    target_name: str

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    @property
    def command_line(self) -> str:
        """Human-readable command line, for the job log."""
        return subprocess.list2cmdline(self.argv)


def _find_editor_target(source_dir: Path) -> str | None:
    for entry in sorted(source_dir.iterdir(), key=lambda p: p.name):
        if entry.is_file() and entry.name.endswith(EDITOR_TARGET_SUFFIX):
            return entry.name[: -len(TARGET_FILE_SUFFIX)]
    return None


def resolve_target_name(project_path: Path | str) -> str:
    """Return the editor target to build for a project file.

    Looks for ``*Editor.Target.cs`` in ``<project dir>/Source``; falls
    back to ``<project stem>Editor``.  Never raises.
    """
    project_path = Path(project_path)
    source_dir = project_path.parent / SOURCE_DIR_NAME

    if os.path.isdir(source_dir):
        try:
            target = _find_editor_target(source_dir)
        except OSError as exc:
            logger.warning("Cannot list %s: %s", source_dir, exc)
            target = None
        if target:
            return target

    return f"{project_path.stem}Editor"


def build_tool_path(engine_root: Path | str) -> Path:
    """Location of UnrealBuildTool inside an engine root."""
    return (
        Path(engine_root)
        / "Engine"
        / "Binaries"
        / "DotNET"
        / "UnrealBuildTool"
        / "UnrealBuildTool.dll"
    )


def build_invocation(
    project_path: Path,
    engine_root: Path,
    target_name: str,
    settings: ForgelineSettings,
) -> BuildInvocation:
    """Assemble the UnrealBuildTool command for an editor build."""
    return BuildInvocation(
        executable=settings.build_executable,
        args=[
            str(build_tool_path(engine_root)),
            target_name,
            settings.build_platform,
            settings.build_configuration,
            f"-Project={project_path}",
            "-WaitMutex",
        ],
        target_name=target_name,
    )
