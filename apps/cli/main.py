"""Typer CLI entrypoint for docapi-client."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import httpx
import typer

from apps.cli.format_human import render_projections, render_result_summary
from apps.cli.io import format_json, read_json_file, write_json_atomic
from core.client.api_client import DocumentApiClient
from core.client.config import load_client_config
from core.documents import dispatcher
from core.documents.models import dump_result
from core.documents.projector import mutate, project
from core.documents.samples import MULTI_SAMPLE_OPERATIONS, sample_json
from core.operations.models import OperationSpec
from core.operations.registry import find_operation, get_operation, list_supported_operations
from core.orchestrator.pipeline import run_operation
from core.utils.errors import MissingParametersError, PathResolutionError, UnknownOperationError

app = typer.Typer(help="Document API client CLI", rich_markup_mode=None)

JsonOption = Annotated[
    Path, typer.Option("--json", exists=True, dir_okay=False, file_okay=True)
]
OutOption = Annotated[
    Path | None,
    typer.Option("--out", help="Write the result here instead of updating --json in place."),
]

_TRUE_VALUES = {"1", "true", "yes", "on"}


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep explicit subcommand form."""


@app.command("operations")
def operations_command() -> None:
    """List supported operations in catalog order."""

    for name in list_supported_operations():
        operation = get_operation(name)
        typer.echo(f"{operation.name}\t{operation.method}\t{operation.path}")


@app.command("sample")
def sample_command(
    operation: Annotated[str, typer.Option(...)],
    multi: Annotated[bool, typer.Option("--multi", help="Multi-document sample.")] = False,
    out: Annotated[Path | None, typer.Option()] = None,
) -> None:
    """Print or write the starting JSON body for an operation."""

    if find_operation(operation) is None:
        typer.echo(f"ERROR: unsupported operation: {operation}")
        raise typer.Exit(code=3)

    if multi and operation not in MULTI_SAMPLE_OPERATIONS:
        typer.echo(
            f"WARNING: --multi has no multi-document sample for {operation}; using the default.",
            err=True,
        )

    payload = sample_json(operation, multi=multi)
    if out is None:
        typer.echo(format_json(payload))
        return
    write_json_atomic(out, payload)
    typer.echo(f"INFO: wrote sample to {out}")


@app.command("fields")
def fields_command(
    json_path: JsonOption,
    output_format: Annotated[str, typer.Option("--format")] = "human",
) -> None:
    """Show the flat form projection of a document JSON file."""

    normalized_format = output_format.lower().strip()
    if normalized_format not in {"human", "json"}:
        typer.echo("ERROR: --format must be one of: human, json.")
        raise typer.Exit(code=3)

    projections = project(_load_json(json_path))
    if normalized_format == "json":
        typer.echo(format_json([item.model_dump(mode="json") for item in projections]))
    else:
        typer.echo(render_projections(projections))


@app.command("set")
def set_command(
    json_path: JsonOption,
    path: Annotated[str, typer.Option("--path", help="e.g. Document.Fields[0].Values[0]")],
    value: Annotated[str, typer.Option("--value")],
    out: OutOption = None,
) -> None:
    """Replace one scalar leaf addressed by a field path."""

    try:
        updated = mutate(_load_json(json_path), path, value)
    except PathResolutionError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=3) from exc
    _write_result(out or json_path, updated)


@app.command("multi")
def multi_command(json_path: JsonOption, out: OutOption = None) -> None:
    """Convert a single-document JSON file into a collection."""

    _write_result(out or json_path, dispatcher.normalize(_load_json(json_path)))


@app.command("single")
def single_command(json_path: JsonOption, out: OutOption = None) -> None:
    """Keep only the first document of a collection."""

    current = _load_json(json_path)
    dropped = max(dispatcher.document_count(current) - 1, 0)
    if dropped:
        typer.echo(f"WARNING: discarding {dropped} document(s) after the first.")
    _write_result(out or json_path, dispatcher.denormalize(current))


@app.command("add-document")
def add_document_command(json_path: JsonOption, out: OutOption = None) -> None:
    """Append an empty document, converting to a collection if needed."""

    _write_result(out or json_path, dispatcher.add_document(_load_json(json_path)))


@app.command("remove-document")
def remove_document_command(json_path: JsonOption, out: OutOption = None) -> None:
    """Remove the last document; the only remaining document is kept."""

    current = _load_json(json_path)
    if dispatcher.document_count(current) <= 1:
        typer.echo("INFO: nothing removed (one document left).")
    _write_result(out or json_path, dispatcher.remove_last(current))


@app.command("run")
def run_command(
    operation: Annotated[str, typer.Option(...)],
    param: Annotated[
        list[str] | None,
        typer.Option("--param", help="Operation parameter as name=value (repeatable)."),
    ] = None,
    json_path: Annotated[
        Path | None, typer.Option("--json", exists=True, dir_okay=False, file_okay=True)
    ] = None,
    endpoint: Annotated[str | None, typer.Option(envvar="DOCAPI_ENDPOINT")] = None,
    username: Annotated[str | None, typer.Option(envvar="DOCAPI_USERNAME")] = None,
    password: Annotated[str | None, typer.Option(envvar="DOCAPI_PASSWORD")] = None,
    response_out: Annotated[
        Path | None, typer.Option("--response-out", help="Write the full result JSON here.")
    ] = None,
) -> None:
    """Submit one operation; collections run once per document."""

    definition = find_operation(operation)
    if definition is None:
        typer.echo(f"ERROR: unsupported operation: {operation}")
        raise typer.Exit(code=3)

    try:
        params = _parse_params(definition, param or [])
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=3) from exc

    document_json: Any = None
    if definition.needs_json_editor:
        if json_path is None:
            typer.echo(f"ERROR: --json is required for {operation}.")
            raise typer.Exit(code=3)
        document_json = _load_json(json_path)

    config = load_client_config(endpoint=endpoint, username=username, password=password)
    client = DocumentApiClient(config, transport=_upstream_transport())

    try:
        result = asyncio.run(run_operation(client, operation, params, document_json))
    except UnknownOperationError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=3) from exc
    except MissingParametersError as exc:
        typer.echo(f"ERROR: {exc}: {', '.join(exc.missing)}")
        raise typer.Exit(code=2) from exc

    typer.echo(render_result_summary(result))
    payload = dump_result(result)
    if response_out is not None:
        write_json_atomic(response_out, payload)
        typer.echo(f"INFO: wrote response to {response_out}")
    else:
        typer.echo(format_json(payload))

    raise typer.Exit(code=0 if result.success else 1)


def _load_json(path: Path) -> Any:
    try:
        return read_json_file(path)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=3) from exc


def _write_result(path: Path, payload: Any) -> None:
    write_json_atomic(path, payload)
    count = dispatcher.document_count(payload)
    suffix = f" ({count} documents)" if count else ""
    typer.echo(f"INFO: wrote {path}{suffix}")


def _parse_params(definition: OperationSpec, raw_items: list[str]) -> dict[str, Any]:
    checkbox_names = {param.name for param in definition.parameters if param.type == "checkbox"}
    params: dict[str, Any] = {}
    for item in raw_items:
        name, separator, value = item.partition("=")
        if not separator or not name:
            raise ValueError(f"--param must look like name=value, got {item!r}")
        if name in checkbox_names:
            params[name] = value.strip().lower() in _TRUE_VALUES
        else:
            params[name] = value
    return params


def _upstream_transport() -> httpx.AsyncBaseTransport | None:
    """Transport override hook; ``None`` uses the default network transport."""

    return None


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
