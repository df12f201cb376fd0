"""Command modules of the Scorefree CLI."""

from __future__ import annotations

import typer
from rich.console import Console

from scorefree.cli.commands import library, pipeline

COMMAND_MODULES = (pipeline, library)


def register_commands(app: typer.Typer, console: Console) -> None:
    """Let every command module attach its commands to ``app``."""

    for module in COMMAND_MODULES:
        module.register(app, console)


__all__ = ["COMMAND_MODULES", "register_commands"]
