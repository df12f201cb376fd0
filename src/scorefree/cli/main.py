"""CLI entry point and application wiring."""

from __future__ import annotations

from typing import Optional, Sequence

import typer
from rich.console import Console

from scorefree import __version__
from scorefree.cli.commands import register_commands

APP_HELP = "Ingest sports highlights, flag score spoilers, and browse score-free videos."


class CLIApplication:
    """Builds the Typer app and shares one rich console across every command."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self._app = typer.Typer(name="scorefree", help=APP_HELP, add_completion=False, rich_markup_mode="rich")
        self._install_root_callback()
        register_commands(self._app, self.console)

    @property
    def app(self) -> typer.Typer:
        return self._app

    def run(self, args: Optional[Sequence[str]] = None) -> None:
        self._app(prog_name="scorefree", args=list(args) if args is not None else None)

    def _install_root_callback(self) -> None:
        console = self.console

        def _show_version(value: bool) -> None:
            if value:
                console.print(f"scorefree {__version__}")
                raise typer.Exit()

        @self._app.callback(invoke_without_command=True)
        def root(
            ctx: typer.Context,
            version: bool = typer.Option(
                False, "--version", callback=_show_version, is_eager=True, help="Show the version and exit"
            ),
        ) -> None:
            if ctx.invoked_subcommand is None:
                console.print("[bold green]Scorefree CLI ready.[/bold green] Run [cyan]scorefree --help[/cyan] for commands.")


def create_app(console: Optional[Console] = None) -> typer.Typer:
    """Return a configured Typer application; tests pass their own console."""

    return CLIApplication(console=console).app


def main() -> None:
    """Console-script entry point (``scorefree`` or ``python -m scorefree``)."""

    CLIApplication().run()


__all__ = ["CLIApplication", "create_app", "main"]
