"""Main Typer application — imports and registers all CLI commands.

Entry point: ``forgeline`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from forgeline.cli.commands.build import build_cmd
from forgeline.cli.commands.config_cmd import config_app
from forgeline.cli.commands.detect import detect_cmd
from forgeline.cli.commands.serve import serve_cmd
from forgeline.config import ForgelineSettings, configure_logging

app = typer.Typer(
    name="forgeline",
    help="Forgeline: launch, watch and cancel Unreal Build Tool builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to FORGELINE_LOG_LEVEL).",
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or ForgelineSettings().log_level)


# Register subcommands
app.command(name="serve", help="Run the build HTTP API.")(serve_cmd)
app.command(name="build", help="Build a project and stream its log.")(build_cmd)
app.command(name="detect", help="List detected Unreal Engine installs.")(detect_cmd)
app.add_typer(config_app, name="config")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
