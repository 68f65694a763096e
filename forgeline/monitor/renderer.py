"""Rich terminal renderer for build jobs.

Turns ``BuildStatus`` snapshots into Rich panels and tails job logs by
polling, the same way an HTTP client would.

Color scheme
------------
- yellow    : RUNNING
- green     : SUCCESS
- red       : ERROR
- magenta   : CANCELLED
"""

from __future__ import annotations

import time
from typing import Protocol

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from forgeline.models.jobs import BuildLogsResponse, BuildStatus, JobState

# ---------------------------------------------------------------------------
# State -> Rich style mapping
# ---------------------------------------------------------------------------

_STATE_STYLES: dict[JobState, str] = {
    JobState.RUNNING: "bold yellow",
    JobState.SUCCESS: "bold green",
    JobState.ERROR: "bold red",
    JobState.CANCELLED: "bold magenta",
}

_STATE_LABELS: dict[JobState, str] = {
    JobState.RUNNING: "[yellow]RUNNING[/yellow]",
    JobState.SUCCESS: "[green]SUCCESS[/green]",
    JobState.ERROR: "[bold red]ERROR[/bold red]",
    JobState.CANCELLED: "[magenta]CANCELLED[/magenta]",
}

# Substrings that mark compiler diagnostics in build output
_ERROR_MARKERS = ("error", "fatal")
_WARNING_MARKERS = ("warning",)


class LogSource(Protocol):
    """Anything that serves job status and log pages by id."""

    def get_status(self, job_id: str) -> BuildStatus | None: ...

    def get_logs(self, job_id: str, cursor: int = 0) -> BuildLogsResponse | None: ...


def line_style(line: str) -> str:
    lowered = line.lower()
    if any(marker in lowered for marker in _ERROR_MARKERS):
        return "red"
    if any(marker in lowered for marker in _WARNING_MARKERS):
        return "yellow"
    return ""


class BuildRenderer:
    """Renders build status and log output to a Rich console.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def render_status(self, status: BuildStatus) -> Panel:
        """Render a status snapshot as a Rich Panel."""
        table = Table(show_header=False, expand=True, box=None, pad_edge=False)
        table.add_column("Field", style="bold", width=12)
        table.add_column("Value")

        table.add_row("Job", escape(status.job_id))
        table.add_row("Target", escape(status.target_name) or "[dim]-[/dim]")
        table.add_row("State", _STATE_LABELS.get(status.state, status.state.value))
        table.add_row(
            "Exit code",
            str(status.exit_code) if status.exit_code is not None else "[dim]-[/dim]",
        )
        if status.error_message:
            table.add_row("Error", f"[red]{escape(status.error_message)}[/red]")
        table.add_row("Started", status.started_at.strftime("%Y-%m-%d %H:%M:%S UTC"))
        if status.finished_at is not None:
            elapsed = (status.finished_at - status.started_at).total_seconds()
            table.add_row(
                "Finished",
                f"{status.finished_at.strftime('%Y-%m-%d %H:%M:%S UTC')} "
                f"[dim]({elapsed:.1f}s)[/dim]",
            )

        return Panel(
            table,
            title="[bold]Forgeline Build[/bold]",
            border_style=_STATE_STYLES.get(status.state, "blue"),
            padding=(1, 2),
        )

    def print_status(self, status: BuildStatus) -> None:
        self.console.print(self.render_status(status))

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def print_lines(self, lines: list[str]) -> None:
        """Print raw log lines, highlighting diagnostics."""
        for line in lines:
            self.console.print(Text(line, style=line_style(line)), soft_wrap=True)

    def follow(
        self,
        source: LogSource,
        job_id: str,
        *,
        poll_interval: float = 0.5,
        cursor: int = 0,
    ) -> BuildStatus | None:
        """Tail a job's log until it finishes.  Returns the final status.

        Returns None if the job is unknown.
        """
        while True:
            page = source.get_logs(job_id, cursor)
            if page is None:
                return None
            self.print_lines(page.lines)
            cursor = page.next_index
            # A finished page already holds the summary line
            if page.finished:
                return source.get_status(job_id)
            time.sleep(poll_interval)
