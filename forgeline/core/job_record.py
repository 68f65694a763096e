"""Job Record — state and metadata for one build attempt.

Enforces:
- A record starts RUNNING and finalizes exactly once (first call wins)
- Only terminal states are valid finalize targets (VALID_TRANSITIONS)
- Every finalize appends one summary line, the last line of the job
- Exit-vs-cancel disambiguation happens under the same lock as cancel
"""

from __future__ import annotations

import logging
import subprocess
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from forgeline.config import DEFAULT_MAX_LOG_LINES
from forgeline.core.log_buffer import LogBuffer
from forgeline.models.jobs import (
    VALID_TRANSITIONS,
    BuildLogsResponse,
    BuildStatus,
    JobState,
)

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Build completed successfully."
CANCELLED_MESSAGE = "Build cancelled."
FAILED_MESSAGE = "Build failed."
CANCEL_REQUESTED_MESSAGE = "Cancel requested."


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


def exit_failure_message(exit_code: int | None) -> str:
    shown = "unknown" if exit_code is None else exit_code
    return f"Build failed with exit code {shown}."


def normalize_returncode(returncode: int | None) -> int | None:
    """Map a Popen return code to an exit code.

    Negative codes mean the child died from a signal and has no exit code.
    """
    if returncode is None or returncode < 0:
        return None
    return returncode


class JobRecord:
    """Mutable record for a single build job.

    All mutable fields are guarded by one re-entrant lock.  Readers get
    consistent snapshots through ``snapshot()`` and ``read_logs()``.

    Parameters
    ----------
    target_name:
        Build target resolved for this job, for display.
    project_path:
        Project file being built, for display.
    log_capacity:
        Maximum retained log lines.
    """

    def __init__(
        self,
        *,
        target_name: str = "",
        project_path: Path | None = None,
        log_capacity: int = DEFAULT_MAX_LOG_LINES,
        job_id: str | None = None,
    ) -> None:
        self.job_id = job_id or str(uuid.uuid4())
        self.target_name = target_name
        self.project_path = project_path
        self.started_at = datetime.now(timezone.utc)
        self.log = LogBuffer(log_capacity)

        self._lock = threading.RLock()
        self._done = threading.Event()
        self._state = JobState.RUNNING
        self._finished_at: datetime | None = None
        self._exit_code: int | None = None
        self._error_message: str | None = None
        self._cancel_requested = False
        self._process: subprocess.Popen | None = None

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> JobState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state == JobState.RUNNING

    @property
    def finished_at(self) -> datetime | None:
        with self._lock:
            return self._finished_at

    @property
    def exit_code(self) -> int | None:
        with self._lock:
            return self._exit_code

    @property
    def error_message(self) -> str | None:
        with self._lock:
            return self._error_message

    @property
    def cancel_requested(self) -> bool:
        with self._lock:
            return self._cancel_requested

    @property
    def process(self) -> subprocess.Popen | None:
        with self._lock:
            return self._process

    def append_log(self, line: str) -> None:
        self.log.append(line)

    def snapshot(self) -> BuildStatus:
        """Return a frozen status snapshot."""
        with self._lock:
            return BuildStatus(
                job_id=self.job_id,
                state=self._state,
                exit_code=self._exit_code,
                error_message=self._error_message,
                started_at=self.started_at,
                finished_at=self._finished_at,
                target_name=self.target_name,
            )

    def read_logs(self, cursor: int) -> BuildLogsResponse:
        """Read log lines from ``cursor``; negative cursors read from 0."""
        with self._lock:
            lines, next_cursor = self.log.read_from(max(0, cursor))
            return BuildLogsResponse(
                lines=lines,
                next_index=next_cursor,
                finished=self._state != JobState.RUNNING,
            )

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the job is terminal.  Returns False on timeout."""
        return self._done.wait(timeout)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def attach_process(self, process: subprocess.Popen) -> None:
        with self._lock:
            if self._finished_at is None:
                self._process = process

    def finalize(
        self,
        state: JobState,
        *,
        exit_code: int | None = None,
        error: str | None = None,
    ) -> bool:
        """Move the record to a terminal state.

        Returns True if this call performed the transition, False if the
        record was already finalized.
        """
        if state not in VALID_TRANSITIONS[JobState.RUNNING]:
            raise InvalidTransitionError(
                f"Cannot finalize job {self.job_id} to {state.value}. "
                f"Allowed: {sorted(s.value for s in VALID_TRANSITIONS[JobState.RUNNING])}"
            )

        with self._lock:
            if self._finished_at is not None:
                return False

            self._state = state
            self._exit_code = exit_code
            self._error_message = error
            self._finished_at = datetime.now(timezone.utc)
            self._process = None

            if state == JobState.SUCCESS:
                self.log.append(SUCCESS_MESSAGE)
            elif state == JobState.CANCELLED:
                self.log.append(CANCELLED_MESSAGE)
            else:
                self.log.append(error or FAILED_MESSAGE)

        self._done.set()
        logger.info(
            "Job %s finished: %s (exit code %s)", self.job_id, state.value, exit_code
        )
        return True

    def complete(self, returncode: int | None) -> bool:
        """Finalize from an observed process exit.

        A pending cancel request wins over the actual exit code.
        """
        exit_code = normalize_returncode(returncode)
        with self._lock:
            if self._cancel_requested:
                return self.finalize(
                    JobState.CANCELLED, exit_code=exit_code, error=CANCELLED_MESSAGE
                )
            if exit_code == 0:
                return self.finalize(JobState.SUCCESS, exit_code=0)
            return self.finalize(
                JobState.ERROR,
                exit_code=exit_code,
                error=exit_failure_message(exit_code),
            )

    def request_cancel(self) -> subprocess.Popen | None:
        """Flag the job as cancelled and return the process to signal.

        Returns None when there is nothing to cancel: the job is terminal
        or has no live process.
        """
        with self._lock:
            if self._state != JobState.RUNNING or self._process is None:
                return None
            self._cancel_requested = True
            self.log.append(CANCEL_REQUESTED_MESSAGE)
            return self._process
