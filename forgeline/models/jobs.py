"""Build job state machine and wire models.

A job is RUNNING from the moment it is accepted and leaves that state
exactly once, for one of the three terminal states.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class JobState(str, Enum):
    """Lifecycle state of a single build job."""

    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


# Valid state transitions, enforced by JobRecord.finalize.
# Terminal states have no outgoing transitions; there is no retry.
VALID_TRANSITIONS: dict[JobState, set[JobState]] = {
    JobState.RUNNING: {JobState.SUCCESS, JobState.ERROR, JobState.CANCELLED},
    JobState.SUCCESS: set(),
    JobState.ERROR: set(),
    JobState.CANCELLED: set(),
}

TERMINAL_STATES: frozenset[JobState] = frozenset(
    {JobState.SUCCESS, JobState.ERROR, JobState.CANCELLED}
)


class WireModel(BaseModel):
    """Frozen model serialized with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BuildStartRequest(WireModel):
    """Paths needed to start a build.  Both are trimmed by the registry."""

    project_path: str = Field(min_length=1)
    engine_path: str = Field(min_length=1)


class BuildStartResponse(WireModel):
    job_id: str


class BuildStatus(WireModel):
    """Read-only snapshot of a job record."""

    job_id: str
    state: JobState
    exit_code: int | None = None
    error_message: str | None = None
    started_at: datetime
    finished_at: datetime | None = None
    target_name: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


class BuildLogsResponse(WireModel):
    """A page of log lines read from a client cursor."""

    lines: list[str] = []
    next_index: int = 0
    finished: bool = False


class ActiveBuildResponse(WireModel):
    job_id: str | None = None
