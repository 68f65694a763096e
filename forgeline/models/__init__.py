"""Forgeline data models — Pydantic v2, frozen, camelCase on the wire."""

from forgeline.models.config import (
    EngineDetectResponse,
    EngineInstall,
    ProjectConfig,
    UserConfig,
)
from forgeline.models.jobs import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ActiveBuildResponse,
    BuildLogsResponse,
    BuildStartRequest,
    BuildStartResponse,
    BuildStatus,
    JobState,
)

__all__ = [
    # jobs
    "JobState",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "BuildStartRequest",
    "BuildStartResponse",
    "BuildStatus",
    "BuildLogsResponse",
    "ActiveBuildResponse",
    # config
    "ProjectConfig",
    "UserConfig",
    "EngineInstall",
    "EngineDetectResponse",
]
