"""Process Supervisor — runs the external build and drives its job record.

One child process per job.  Two daemon reader threads copy stdout and
stderr into the job log line by line; a watcher thread joins both readers
before waiting on the process, so the finalize summary line is always the
last line of the log.  Nothing here blocks the caller of ``launch``.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
from collections.abc import Callable
from typing import IO

from forgeline.core.job_record import JobRecord
from forgeline.core.target_resolver import BuildInvocation
from forgeline.models.jobs import JobState

logger = logging.getLogger(__name__)

STOP_FAILED_MESSAGE = "Failed to stop build process."


def _creation_flags() -> int:
    # Keep the build tool from opening a console window on Windows.
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


class ProcessSupervisor:
    """Spawns build processes and reports terminal transitions.

    Parameters
    ----------
    on_finished:
        Called with the job record after it reaches a terminal state,
        outside of any record lock.
    kill_timeout:
        Seconds to wait after a delivered terminate before killing the
        process outright.  ``None`` sends a single terminate only.
    """

    def __init__(
        self,
        on_finished: Callable[[JobRecord], None] | None = None,
        *,
        kill_timeout: float | None = None,
    ) -> None:
        self._on_finished = on_finished
        self._kill_timeout = kill_timeout

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    def launch(self, invocation: BuildInvocation, job: JobRecord) -> None:
        """Start the build for ``job`` and return immediately."""
        job.append_log(f"Starting build for {invocation.target_name}...")
        job.append_log(f"Command: {invocation.command_line}")

        try:
            process = subprocess.Popen(
                invocation.argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                creationflags=_creation_flags(),
            )
        except OSError as exc:
            logger.error("Job %s failed to spawn %s: %s", job.job_id, invocation.executable, exc)
            self._finish(job, JobState.ERROR, error=str(exc))
            return

        job.attach_process(process)
        logger.info("Job %s started pid %s", job.job_id, process.pid)

        readers = [
            self._start_reader(job, process.stdout, "stdout"),
            self._start_reader(job, process.stderr, "stderr"),
        ]
        threading.Thread(
            target=self._watch,
            args=(job, process, readers),
            name=f"forgeline-watch-{job.job_id[:8]}",
            daemon=True,
        ).start()

    def _start_reader(
        self, job: JobRecord, stream: IO[str] | None, name: str
    ) -> threading.Thread:
        thread = threading.Thread(
            target=self._pump,
            args=(job, stream),
            name=f"forgeline-{name}-{job.job_id[:8]}",
            daemon=True,
        )
        thread.start()
        return thread

    @staticmethod
    def _pump(job: JobRecord, stream: IO[str] | None) -> None:
        if stream is None:
            return
        with stream:
            for raw in iter(stream.readline, ""):
                job.append_log(raw.rstrip("\r\n"))

    def _watch(
        self,
        job: JobRecord,
        process: subprocess.Popen,
        readers: list[threading.Thread],
    ) -> None:
        for reader in readers:
            reader.join()
        returncode = process.wait()
        if job.complete(returncode):
            self._notify(job)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel(self, job: JobRecord) -> bool:
        """Send a termination signal to the job's process.

        Returns True if the signal was delivered.  A signalling failure
        finalizes the job as an error and returns False.
        """
        process = job.request_cancel()
        if process is None:
            return False

        logger.info("Job %s cancel requested, terminating pid %s", job.job_id, process.pid)
        try:
            process.terminate()
        except OSError as exc:
            logger.warning("Job %s could not be signalled: %s", job.job_id, exc)
            self._finish(job, JobState.ERROR, error=STOP_FAILED_MESSAGE)
            return False

        if self._kill_timeout is not None:
            timer = threading.Timer(self._kill_timeout, self._force_kill, args=(job, process))
            timer.daemon = True
            timer.start()
        return True

    @staticmethod
    def _force_kill(job: JobRecord, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        logger.warning("Job %s ignored terminate, killing pid %s", job.job_id, process.pid)
        try:
            process.kill()
        except OSError as exc:
            logger.warning("Job %s could not be killed: %s", job.job_id, exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _finish(
        self,
        job: JobRecord,
        state: JobState,
        *,
        exit_code: int | None = None,
        error: str | None = None,
    ) -> None:
        if job.finalize(state, exit_code=exit_code, error=error):
            self._notify(job)

    def _notify(self, job: JobRecord) -> None:
        if self._on_finished is not None:
            self._on_finished(job)
