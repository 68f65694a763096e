"""Shared test fixtures for Forgeline."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from forgeline.config import ForgelineSettings
from forgeline.core.build_manager import BuildManager
from forgeline.core.target_resolver import BuildInvocation, build_tool_path
from forgeline.models.jobs import BuildStartRequest

# ---------------------------------------------------------------------------
# Child process scripts, run with the test interpreter in place of dotnet
# ---------------------------------------------------------------------------

SCRIPTS: dict[str, str] = {
    "success": "print('compiling'); print('linking')",
    "fail": (
        "import sys; "
        "print('error C2065: undeclared identifier', file=sys.stderr); "
        "sys.exit(3)"
    ),
    "sleep": "import time; print('ready', flush=True); time.sleep(30)",
    "chatty": "for i in range(50): print(f'line {i}')",
}


def _script_source(script: str) -> str:
    return SCRIPTS.get(script, script)


def python_invocation(script: str) -> Callable[..., BuildInvocation]:
    """Invocation factory that runs a script instead of the build tool."""
    source = _script_source(script)

    def _factory(
        project_path: Path,
        engine_root: Path,
        target_name: str,
        settings: ForgelineSettings,
    ) -> BuildInvocation:
        return BuildInvocation(
            executable=sys.executable,
            args=["-c", source],
            target_name=target_name,
        )

    return _factory


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def settings(tmp_dir: Path) -> ForgelineSettings:
    """Settings isolated from the developer's config directory."""
    return ForgelineSettings(config_dir=tmp_dir / "config")


@pytest.fixture
def project_file(tmp_dir: Path) -> Path:
    """A project tree with an editor target under Source/."""
    root = tmp_dir / "Lyra"
    (root / "Source").mkdir(parents=True)
    (root / "Source" / "LyraEditor.Target.cs").write_text("// target\n")
    (root / "Source" / "LyraGame.Target.cs").write_text("// target\n")
    project = root / "Lyra.uproject"
    project.write_text("{}")
    return project


@pytest.fixture
def engine_root(tmp_dir: Path) -> Path:
    """An engine root containing a placeholder UnrealBuildTool."""
    root = tmp_dir / "UE_5.3"
    tool = build_tool_path(root)
    tool.parent.mkdir(parents=True)
    tool.write_bytes(b"")
    return root


@pytest.fixture
def start_request(project_file: Path, engine_root: Path) -> BuildStartRequest:
    return BuildStartRequest(project_path=str(project_file), engine_path=str(engine_root))


@pytest.fixture
def make_invocation() -> Callable[..., BuildInvocation]:
    """Factory fixture: a BuildInvocation running a named or inline script."""

    def _factory(script: str = "success", target_name: str = "LyraEditor") -> BuildInvocation:
        return BuildInvocation(
            executable=sys.executable,
            args=["-c", _script_source(script)],
            target_name=target_name,
        )

    return _factory


@pytest.fixture
def make_manager(settings: ForgelineSettings) -> Iterator[Callable[..., BuildManager]]:
    """Factory fixture: a BuildManager whose builds run a test script.

    Builds still running at teardown are cancelled and awaited.
    """
    managers: list[BuildManager] = []

    def _factory(script: str = "success", **overrides) -> BuildManager:
        manager = BuildManager(
            settings.model_copy(update=overrides),
            invocation_factory=python_invocation(script),
        )
        managers.append(manager)
        return manager

    yield _factory

    for manager in managers:
        active = manager.active_job_id
        if active is not None:
            manager.cancel_build(active)
            manager.wait(active, timeout=10)
