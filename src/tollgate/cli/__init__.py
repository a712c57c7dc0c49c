"""Typer command-line interface."""

from tollgate.cli.cli import app

__all__ = ["app"]
