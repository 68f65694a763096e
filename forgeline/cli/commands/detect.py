"""``forgeline detect`` — list Unreal Engine installs found on this machine."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from forgeline.discovery.engine_detector import detect_engine_installs

console = Console()


def detect_cmd() -> None:
    """List detected engine installs, newest first."""
    installs = detect_engine_installs()
    if not installs:
        console.print("[dim]No Unreal Engine installs found.[/dim]")
        return

    table = Table(title="Unreal Engine Installs", header_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Path")
    for install in installs:
        table.add_row(
            escape(install.name),
            escape(install.version) if install.version else "[dim]?[/dim]",
            escape(install.path),
        )
    console.print(table)
