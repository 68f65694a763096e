"""Build job core: log buffer, job record, process supervisor, registry."""

from forgeline.core.build_manager import (
    BuildConflictError,
    BuildError,
    BuildManager,
    BuildValidationError,
)
from forgeline.core.job_record import InvalidTransitionError, JobRecord
from forgeline.core.log_buffer import LogBuffer, LogSlice
from forgeline.core.supervisor import ProcessSupervisor
from forgeline.core.target_resolver import (
    BuildInvocation,
    build_invocation,
    build_tool_path,
    resolve_target_name,
)

__all__ = [
    "BuildManager",
    "BuildError",
    "BuildValidationError",
    "BuildConflictError",
    "JobRecord",
    "InvalidTransitionError",
    "LogBuffer",
    "LogSlice",
    "ProcessSupervisor",
    "BuildInvocation",
    "build_invocation",
    "build_tool_path",
    "resolve_target_name",
]
