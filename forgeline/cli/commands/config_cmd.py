"""``forgeline config`` — show and edit the saved projects and engine path."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from forgeline.config import ForgelineSettings
from forgeline.models.config import ProjectConfig, UserConfig
from forgeline.store.config_store import ConfigStore, default_config_path

console = Console()

config_app = typer.Typer(
    name="config",
    help="Show and edit saved projects and the engine path.",
    no_args_is_help=True,
)


def open_store() -> ConfigStore:
    """Config store at the location the current environment selects."""
    return ConfigStore(default_config_path(ForgelineSettings().config_dir))


@config_app.command(name="show", help="Print the saved configuration.")
def show_cmd() -> None:
    store = open_store()
    config = store.load()

    console.print(f"[bold]Config file:[/bold] {escape(str(store.path))}")
    engine = escape(config.engine_path) if config.engine_path else "[dim]not set[/dim]"
    console.print(f"[bold]Engine path:[/bold] {engine}")

    if not config.projects:
        console.print("[dim]No projects saved.[/dim]")
        return

    table = Table(title="Projects", header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    for project in config.projects:
        table.add_row(escape(project.name), escape(project.path))
    console.print(table)


@config_app.command(name="set-engine", help="Save the engine root to build with.")
def set_engine_cmd(
    path: str = typer.Argument(..., help="Engine root directory."),
) -> None:
    store = open_store()
    config = store.load()
    store.save(UserConfig(projects=config.projects, engine_path=path))
    console.print(f"[green]Engine path set to[/green] {escape(path)}")


@config_app.command(name="add-project", help="Save a named project file.")
def add_project_cmd(
    name: str = typer.Argument(..., help="Display name for the project."),
    path: str = typer.Argument(..., help="Path to the .uproject file."),
) -> None:
    store = open_store()
    config = store.load()
    projects = [p for p in config.projects if p.name != name]
    projects.append(ProjectConfig(name=name, path=path))
    store.save(UserConfig(projects=projects, engine_path=config.engine_path))
    console.print(f"[green]Saved project[/green] [cyan]{escape(name)}[/cyan] -> {escape(path)}")


@config_app.command(name="remove-project", help="Forget a saved project.")
def remove_project_cmd(
    name: str = typer.Argument(..., help="Name of the project to remove."),
) -> None:
    store = open_store()
    config = store.load()
    if config.find_project(name) is None:
        console.print(f"[bold red]Project not found:[/bold red] {escape(name)}")
        raise typer.Exit(code=1)
    projects = [p for p in config.projects if p.name != name]
    store.save(UserConfig(projects=projects, engine_path=config.engine_path))
    console.print(f"[green]Removed project[/green] [cyan]{escape(name)}[/cyan]")
