"""Forgeline CLI — Typer-based command-line interface.

Provides the ``forgeline`` command with subcommands for serving the HTTP
API, running a build in the foreground, detecting engine installs and
editing the saved configuration.

All output uses Rich for formatted terminal display.
"""
