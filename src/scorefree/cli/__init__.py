"""Typer command-line interface for the Scorefree pipeline."""

from scorefree.cli.main import CLIApplication, create_app, main

__all__ = ["CLIApplication", "create_app", "main"]
