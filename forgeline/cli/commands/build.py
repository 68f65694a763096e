"""``forgeline build PROJECT`` — run a build in this process and tail it.

PROJECT is a path to a ``.uproject`` file or the name of a saved
project.  The engine root defaults to the saved one.  Ctrl+C cancels the
build and waits for the build tool to exit.
"""

from __future__ import annotations

import os

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from forgeline.cli.commands.config_cmd import open_store
from forgeline.config import ForgelineSettings
from forgeline.core.build_manager import BuildError, BuildManager
from forgeline.models.jobs import BuildStartRequest, JobState
from forgeline.monitor.renderer import BuildRenderer

console = Console()


def build_cmd(
    project: str = typer.Argument(
        ...,
        help="Path to a .uproject file, or the name of a saved project.",
    ),
    engine: str = typer.Option(
        None,
        "--engine",
        "-e",
        help="Engine root directory. Defaults to the saved engine path.",
    ),
    poll: float = typer.Option(
        0.5,
        "--poll",
        help="Seconds between log polls.",
    ),
) -> None:
    """Build a project's editor target and stream the build log."""
    config = open_store().load()

    project_path = project
    saved = config.find_project(project)
    if saved is not None and not os.path.exists(project):
        project_path = saved.path

    engine_path = engine or config.engine_path
    if not engine_path:
        console.print(
            "[bold red]No engine path given and none saved.[/bold red]\n"
            "[dim]Pass --engine or run: forgeline config set-engine PATH[/dim]"
        )
        raise typer.Exit(code=1)

    manager = BuildManager(ForgelineSettings())
    try:
        request = BuildStartRequest(project_path=project_path, engine_path=engine_path)
        job_id = manager.start_build(request)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        console.print(
            f"[bold red]Build rejected:[/bold red] {escape(field)}: {escape(first['msg'])}"
        )
        raise typer.Exit(code=1)
    except BuildError as exc:
        console.print(f"[bold red]Build rejected:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    renderer = BuildRenderer(console=console)
    try:
        status = renderer.follow(manager, job_id, poll_interval=poll)
    except KeyboardInterrupt:
        console.print("[yellow]Cancelling build...[/yellow]")
        manager.cancel_build(job_id)
        manager.wait(job_id)
        status = manager.get_status(job_id)

    if status is not None:
        console.print()
        renderer.print_status(status)
    if status is None or status.state != JobState.SUCCESS:
        raise typer.Exit(code=1)
