"""Build Job Registry — the entry point for start/status/logs/cancel.

The BuildManager owns every JobRecord and the single active-job slot.
Slot checks, input validation and slot occupation happen under one lock,
so two concurrent starts can never both succeed.  Rejected starts never
create a record and never touch the slot.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

from forgeline.config import ForgelineSettings
from forgeline.core.job_record import JobRecord
from forgeline.core.supervisor import ProcessSupervisor
from forgeline.core.target_resolver import (
    BuildInvocation,
    build_invocation,
    build_tool_path,
    resolve_target_name,
)
from forgeline.models.jobs import BuildLogsResponse, BuildStartRequest, BuildStatus

logger = logging.getLogger(__name__)

InvocationFactory = Callable[[Path, Path, str, ForgelineSettings], BuildInvocation]


class BuildError(RuntimeError):
    """Base class for rejected build requests."""


class BuildValidationError(BuildError):
    """Raised when start inputs are empty or missing on disk."""


class BuildConflictError(BuildError):
    """Raised when a build is started while another one is running."""


class BuildManager:
    """Registry of build jobs enforcing one running build at a time.

    Parameters
    ----------
    settings:
        Runtime settings.  Uses defaults if not provided.
    invocation_factory:
        Builds the external command for a validated request.  Defaults to
        the UnrealBuildTool invocation.
    """

    def __init__(
        self,
        settings: ForgelineSettings | None = None,
        *,
        invocation_factory: InvocationFactory = build_invocation,
    ) -> None:
        self._settings = settings or ForgelineSettings()
        self._invocation_factory = invocation_factory
        self._supervisor = ProcessSupervisor(
            self._release_slot,
            kill_timeout=self._settings.cancel_kill_timeout,
        )
        self._lock = threading.Lock()
        self._jobs: dict[str, JobRecord] = {}
        self._active_job_id: str | None = None

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start_build(self, request: BuildStartRequest) -> str:
        """Validate, register and launch a build.  Returns the job id.

        Raises
        ------
        BuildConflictError
            If another build is running.
        BuildValidationError
            If a path is empty or does not exist.
        """
        with self._lock:
            if self._current_active() is not None:
                raise BuildConflictError("Another build is already running.")

            project_path, engine_root = self._validate(request)
            target_name = resolve_target_name(project_path)
            invocation = self._invocation_factory(
                project_path, engine_root, target_name, self._settings
            )

            job = JobRecord(
                target_name=target_name,
                project_path=project_path,
                log_capacity=self._settings.max_log_lines,
            )
            self._jobs[job.job_id] = job
            self._active_job_id = job.job_id
            self._evict_finished()

        logger.info("Job %s accepted: %s for %s", job.job_id, target_name, project_path)
        self._supervisor.launch(invocation, job)
        return job.job_id

    @staticmethod
    def _validate(request: BuildStartRequest) -> tuple[Path, Path]:
        project = request.project_path.strip()
        engine = request.engine_path.strip()

        if not project:
            raise BuildValidationError("Project path is empty.")
        if not engine:
            raise BuildValidationError("Engine path is empty.")

        project_path = Path(project)
        engine_root = Path(engine)
        # os.path.exists never raises; unreadable or over-long paths count as missing
        if not os.path.exists(project_path):
            raise BuildValidationError("Project path does not exist.")
        if not os.path.exists(engine_root):
            raise BuildValidationError("Engine path does not exist.")
        if not os.path.exists(build_tool_path(engine_root)):
            raise BuildValidationError("UnrealBuildTool not found.")

        return project_path, engine_root

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_job_id(self) -> str | None:
        with self._lock:
            return self._current_active()

    @property
    def job_ids(self) -> list[str]:
        """Ids of every retained job, oldest first."""
        with self._lock:
            return list(self._jobs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def get_job(self, job_id: str) -> JobRecord | None:
        with self._lock:
            return self._jobs.get(job_id)

    def get_status(self, job_id: str) -> BuildStatus | None:
        job = self.get_job(job_id)
        return job.snapshot() if job is not None else None

    def get_logs(self, job_id: str, cursor: int = 0) -> BuildLogsResponse | None:
        job = self.get_job(job_id)
        return job.read_logs(cursor) if job is not None else None

    def wait(self, job_id: str, timeout: float | None = None) -> bool:
        """Block until the job is terminal.  False if unknown or timed out."""
        job = self.get_job(job_id)
        return job.wait(timeout) if job is not None else False

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_build(self, job_id: str) -> bool:
        """Request termination of a running build.

        Returns True if the termination signal was delivered.  The job
        becomes CANCELLED once the process actually exits.
        """
        job = self.get_job(job_id)
        if job is None:
            return False
        return self._supervisor.cancel(job)

    def shutdown(self) -> None:
        """Cancel the active build, if any."""
        active = self.active_job_id
        if active is not None:
            self.cancel_build(active)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current_active(self) -> str | None:
        # A terminal job frees the slot even before its release callback runs.
        if self._active_job_id is None:
            return None
        job = self._jobs.get(self._active_job_id)
        if job is None or not job.is_running:
            self._active_job_id = None
        return self._active_job_id

    def _release_slot(self, job: JobRecord) -> None:
        with self._lock:
            if self._active_job_id == job.job_id:
                self._active_job_id = None

    def _evict_finished(self) -> None:
        """Drop the oldest finished jobs beyond ``max_retained_jobs``."""
        cap = self._settings.max_retained_jobs
        if cap is None or len(self._jobs) <= cap:
            return
        finished = sorted(
            (job for job in self._jobs.values() if job.finished_at is not None),
            key=lambda job: job.finished_at,
        )
        for job in finished[: len(self._jobs) - cap]:
            del self._jobs[job.job_id]
