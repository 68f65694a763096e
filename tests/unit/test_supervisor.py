"""Tests for the ProcessSupervisor — real child processes, exit semantics."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest

from forgeline.core.job_record import JobRecord
from forgeline.core.supervisor import STOP_FAILED_MESSAGE, ProcessSupervisor
from forgeline.core.target_resolver import BuildInvocation
from forgeline.models.jobs import JobState

TIMEOUT = 15


def wait_for_line(job: JobRecord, text: str, timeout: float = TIMEOUT) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if text in job.read_logs(0).lines:
            return
        time.sleep(0.02)
    raise AssertionError(f"{text!r} never appeared in the job log")


class _Recorder:
    def __init__(self) -> None:
        self.finished: list[JobRecord] = []

    def __call__(self, job: JobRecord) -> None:
        self.finished.append(job)


class _UnsignallableProcess:
    pid = 999999

    def terminate(self) -> None:
        raise PermissionError("Operation not permitted")


@pytest.fixture
def recorder() -> _Recorder:
    return _Recorder()


@pytest.fixture
def supervisor(recorder: _Recorder) -> ProcessSupervisor:
    return ProcessSupervisor(recorder)


class TestLaunch:
    def test_success(self, supervisor, recorder, make_invocation):
        job = JobRecord(target_name="LyraEditor")
        supervisor.launch(make_invocation("success"), job)

        assert job.wait(TIMEOUT)
        assert job.state == JobState.SUCCESS
        assert job.exit_code == 0
        assert job.process is None

        lines = job.read_logs(0).lines
        assert lines[0] == "Starting build for LyraEditor..."
        assert lines[1].startswith("Command: ")
        assert lines[2:4] == ["compiling", "linking"]
        assert lines[-1] == "Build completed successfully."
        assert recorder.finished == [job]

    def test_non_zero_exit(self, supervisor, make_invocation):
        job = JobRecord()
        supervisor.launch(make_invocation("fail"), job)

        assert job.wait(TIMEOUT)
        assert job.state == JobState.ERROR
        assert job.exit_code == 3
        assert job.error_message == "Build failed with exit code 3."

        lines = job.read_logs(0).lines
        assert "error C2065: undeclared identifier" in lines
        assert lines[-1] == "Build failed with exit code 3."

    def test_spawn_failure(self, supervisor, recorder, tmp_path: Path):
        job = JobRecord()
        invocation = BuildInvocation(
            executable=str(tmp_path / "no-such-dotnet"),
            target_name="LyraEditor",
        )
        supervisor.launch(invocation, job)

        # Spawn errors finalize synchronously
        assert job.state == JobState.ERROR
        assert job.exit_code is None
        assert job.error_message
        assert job.read_logs(0).lines[-1] == job.error_message
        assert recorder.finished == [job]

    def test_stream_order_preserved(self, supervisor, make_invocation):
        script = (
            "import sys\n"
            "for i in range(200):\n"
            "    print(f'out {i}')\n"
            "    print(f'err {i}', file=sys.stderr)\n"
        )
        job = JobRecord()
        supervisor.launch(make_invocation(script), job)
        assert job.wait(TIMEOUT)

        lines = job.read_logs(0).lines
        for prefix in ("out", "err"):
            numbers = [int(line.split()[1]) for line in lines if line.startswith(prefix + " ")]
            assert numbers == list(range(200))
        assert lines[-1] == "Build completed successfully."

    def test_trailing_partial_line_is_kept(self, supervisor, make_invocation):
        job = JobRecord()
        supervisor.launch(make_invocation("import sys; sys.stdout.write('no newline')"), job)
        assert job.wait(TIMEOUT)
        assert "no newline" in job.read_logs(0).lines

    def test_launch_returns_before_exit(self, supervisor, make_invocation):
        job = JobRecord()
        started = time.monotonic()
        supervisor.launch(make_invocation("sleep"), job)
        assert time.monotonic() - started < 5
        assert job.state == JobState.RUNNING
        assert job.process is not None

        supervisor.cancel(job)
        assert job.wait(TIMEOUT)


class TestCancel:
    def test_cancel_running_process(self, supervisor, recorder, make_invocation):
        job = JobRecord()
        supervisor.launch(make_invocation("sleep"), job)
        wait_for_line(job, "ready")

        assert supervisor.cancel(job) is True
        assert job.wait(TIMEOUT)
        assert job.state == JobState.CANCELLED
        assert job.error_message == "Build cancelled."

        lines = job.read_logs(0).lines
        assert "Cancel requested." in lines
        assert lines[-1] == "Build cancelled."
        assert recorder.finished == [job]

    def test_cancel_without_process(self, supervisor):
        job = JobRecord()
        assert supervisor.cancel(job) is False
        assert job.state == JobState.RUNNING

    def test_cancel_finished_job(self, supervisor, make_invocation):
        job = JobRecord()
        supervisor.launch(make_invocation("success"), job)
        assert job.wait(TIMEOUT)
        assert supervisor.cancel(job) is False
        assert job.state == JobState.SUCCESS

    def test_signal_failure_is_terminal_error(self, supervisor, recorder):
        job = JobRecord()
        job.attach_process(_UnsignallableProcess())

        assert supervisor.cancel(job) is False
        assert job.state == JobState.ERROR
        assert job.error_message == STOP_FAILED_MESSAGE
        assert job.read_logs(0).lines[-1] == STOP_FAILED_MESSAGE
        assert recorder.finished == [job]

    @pytest.mark.skipif(sys.platform == "win32", reason="SIGTERM cannot be ignored on Windows")
    def test_kill_escalation(self, recorder, make_invocation):
        supervisor = ProcessSupervisor(recorder, kill_timeout=0.2)
        script = (
            "import signal, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "print('ready', flush=True)\n"
            "time.sleep(30)\n"
        )
        job = JobRecord()
        supervisor.launch(make_invocation(script), job)
        wait_for_line(job, "ready")

        assert supervisor.cancel(job) is True
        assert job.wait(TIMEOUT)
        assert job.state == JobState.CANCELLED
