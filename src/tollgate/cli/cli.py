"""Typer CLI entrypoint for Tollgate."""

from __future__ import annotations

import json
from http import HTTPStatus
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from tollgate.cli.bootstrap import build_gateway, configure_logging
from tollgate.config.settings import GatewaySettings, load_settings
from tollgate.errors import ConfigError
from tollgate.gateway.service import GatewayResponse, ValidationGateway
from tollgate.registry.bootstrap import build_default_registry

app = typer.Typer(help="Tollgate validation gateway CLI")
_CONSOLE = Console()

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2

_ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        file_okay=True,
        dir_okay=False,
        help="Path to gateway settings YAML/JSON file.",
    ),
]
_ThresholdOption = Annotated[
    float | None,
    typer.Option(
        "--threshold",
        min=0.0,
        max=100.0,
        help="Minimum success percentage for array payloads.",
    ),
]
_PayloadArgument = Annotated[
    Path,
    typer.Argument(
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="JSON file holding an object or an array of objects.",
    ),
]


def _load_settings_or_exit(config_file: Path | None) -> GatewaySettings:
    try:
        settings = load_settings(config_file)
    except ConfigError as exc:
        _CONSOLE.print(f"[bold red]Invalid config:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc
    configure_logging(settings.logging.level)
    return settings


def _read_payload(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        _CONSOLE.print(f"[bold red]Invalid JSON in {path}:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc


def _exit_on_error(response: GatewayResponse) -> None:
    if response.ok:
        return
    body = response.body
    _CONSOLE.print(
        Panel(
            str(body.get("message", "")),
            title=f"{response.status_code} {body.get('error', '')}",
            border_style="bold red",
            expand=True,
        )
    )
    raise typer.Exit(code=EXIT_ERROR)


def _render_issues(title: str, issues: list[dict[str, Any]], style: str) -> None:
    if not issues:
        return
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Field", style="bold")
    table.add_column("Code", style=style)
    table.add_column("Message")
    for issue in issues:
        table.add_row(
            str(issue.get("field", "")),
            str(issue.get("code", "")),
            str(issue.get("message", "")),
        )
    _CONSOLE.print(table)


def _render_array(body: dict[str, Any]) -> int:
    table = Table(title="Records", show_header=True, header_style="bold cyan")
    table.add_column("Row", no_wrap=True)
    table.add_column("Record", style="bold")
    table.add_column("Test", style="magenta")
    table.add_column("First Error", style="red")
    for row in body.get("results", []):
        errors = row.get("errors") or [{}]
        table.add_row(
            str(row.get("row_index", "")),
            str(row.get("record_identifier", "")),
            str(row.get("test_name", "")),
            str(errors[0].get("message", "")),
        )
    if body.get("results"):
        _CONSOLE.print(table)
    passed = body.get("status") == "success"
    _CONSOLE.print(
        Panel(
            (
                f"Valid: {body.get('valid_records')}/{body.get('total_records')}\n"
                f"Success rate: {body['summary']['success_rate']:.2f}%\n"
                f"Threshold: {body.get('threshold')}"
            ),
            title=f"Status: {body.get('status')}",
            border_style="green" if passed else "bold red",
            expand=True,
        )
    )
    return EXIT_OK if passed else EXIT_INVALID


def _render_result(body: dict[str, Any]) -> int:
    _render_issues("Errors", body.get("errors", []), "red")
    _render_issues("Warnings", body.get("warnings", []), "yellow")
    valid = bool(body.get("is_valid"))
    _CONSOLE.print(
        f"[green]{body.get('model_type')}: valid[/green]"
        if valid
        else f"[bold red]{body.get('model_type')}: invalid[/bold red]"
    )
    return EXIT_OK if valid else EXIT_INVALID


@app.command("models")
def models_command() -> None:
    """List built-in model types."""
    registry = build_default_registry()
    table = Table(title="Model Types", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Display Name")
    table.add_column("Version", style="magenta")
    table.add_column("Schema")
    table.add_column("Tags")
    for descriptor in registry.list_all():
        table.add_row(
            descriptor.name,
            descriptor.metadata.display_name,
            descriptor.metadata.version,
            descriptor.schema_type.__name__,
            ", ".join(descriptor.metadata.tags),
        )
    _CONSOLE.print(table)


@app.command("validate")
def validate_command(
    model_type: Annotated[str, typer.Argument(help="Registered model type name.")],
    payload_file: _PayloadArgument,
    threshold: _ThresholdOption = None,
    config_file: _ConfigOption = None,
    show_json: Annotated[
        bool, typer.Option("--json", help="Print the raw result body as JSON.")
    ] = False,
) -> None:
    """Validate a JSON object or array against a model type.

    Args:
        model_type: Registered model type name.
        payload_file: JSON payload path.
        threshold: Optional success threshold for arrays.
        config_file: Optional settings file path.
        show_json: Whether to print the raw body.

    Raises:
        Exit: 0 when valid, 1 when invalid, 2 on lookup or input errors.
    """
    settings = _load_settings_or_exit(config_file)
    payload = _read_payload(payload_file)
    with build_gateway(settings) as gateway:
        response = gateway.validate(model_type, payload, threshold=threshold)
    _exit_on_error(response)
    if show_json:
        _CONSOLE.print(JSON.from_data(response.body))
    if isinstance(payload, list):
        raise typer.Exit(code=_render_array(response.body))
    raise typer.Exit(code=_render_result(response.body))


@app.command("batch")
def batch_command(
    model_type: Annotated[str, typer.Argument(help="Registered model type name.")],
    payload_file: _PayloadArgument,
    threshold: _ThresholdOption = None,
    config_file: _ConfigOption = None,
) -> None:
    """Validate each record of a JSON array inside one batch session.

    Args:
        model_type: Registered model type name.
        payload_file: JSON array path.
        threshold: Optional success threshold for the batch verdict.
        config_file: Optional settings file path.

    Raises:
        Exit: 0 on success verdict, 1 on failed verdict, 2 on errors.
    """
    settings = _load_settings_or_exit(config_file)
    payload = _read_payload(payload_file)
    if not isinstance(payload, list):
        _CONSOLE.print("[bold red]Batch payload must be a JSON array[/bold red]")
        raise typer.Exit(code=EXIT_ERROR)
    with build_gateway(settings) as gateway:
        code = _run_batch(gateway, model_type, payload, threshold)
    raise typer.Exit(code=code)


def _run_batch(
    gateway: ValidationGateway,
    model_type: str,
    records: list[Any],
    threshold: float | None,
) -> int:
    started = gateway.start_batch({"model_type": model_type, "threshold": threshold})
    _exit_on_error(started)
    batch_id = str(started.body["batch_id"])
    for index, record in enumerate(records):
        response = gateway.validate(model_type, record, batch_id=batch_id)
        if response.ok:
            continue
        if response.status_code == HTTPStatus.BAD_REQUEST:
            _CONSOLE.print(
                f"[yellow]Record {index} rejected:[/yellow] {response.body['message']}"
            )
            continue
        _exit_on_error(response)
    completed = gateway.complete_batch(batch_id)
    _exit_on_error(completed)
    body = completed.body
    passed = body["status"] == "success"
    _CONSOLE.print(
        Panel(
            (
                f"Batch: {batch_id}\n"
                f"Valid: {body['valid']}/{body['total']}\n"
                f"Warnings: {body['warnings']}\n"
                f"Success rate: {body['success_rate']:.2f}%\n"
                f"Threshold: {body['threshold']}"
            ),
            title=f"Status: {body['status']}",
            border_style="green" if passed else "bold red",
            expand=True,
        )
    )
    return EXIT_OK if passed else EXIT_INVALID


def main() -> None:
    """Run the Typer application."""
    app()
