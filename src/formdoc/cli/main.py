"""CLI for formdoc: render / describe / sections commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from formdoc.core.config import AppSettings, ObservabilityConfig
from formdoc.core.logging_config import setup_logging
from formdoc.core.types import DataRecord
from formdoc.exceptions import FormDocError
from formdoc.formatters.json_formatter import JSONFormatter
from formdoc.grouping.sections import group_sections_for_document, group_sections_for_form, sort_fields
from formdoc.models import FieldDefinition, HeaderConfig, PdfMetadata, parse_fields
from formdoc.services.document_service import DocumentService

app = typer.Typer(name="formdoc", help="Render form records as paginated PDF reports")
console = Console()


def _settings(verbose: bool) -> AppSettings:
    settings = AppSettings()
    if verbose:
        settings = settings.model_copy(update={"observability": ObservabilityConfig(log_level="DEBUG")})
    setup_logging(settings.observability)
    return settings


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON in {path}: {exc}") from exc


def _load_fields(path: Path) -> list[FieldDefinition]:
    """Load field definitions from a JSON array (or an object with a ``fields`` array)."""
    raw = _read_json(path)
    if isinstance(raw, dict):
        raw = raw.get("fields")
    if not isinstance(raw, list):
        raise typer.BadParameter(f"Expected JSON array of fields in {path}")
    try:
        return parse_fields(raw)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid field definitions in {path}: {exc}") from exc


def _load_record(path: Path) -> DataRecord:
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise typer.BadParameter(f"Expected JSON object in {path}")
    return raw


def _load_header(path: Optional[Path]) -> Optional[HeaderConfig]:
    return HeaderConfig.model_validate(_read_json(path)) if path else None


def _load_metadata(path: Optional[Path]) -> Optional[PdfMetadata]:
    return PdfMetadata.model_validate(_read_json(path)) if path else None


@app.command()
def render(
    fields_file: Path = typer.Argument(..., help="JSON file with field definitions"),
    record_file: Path = typer.Argument(..., help="JSON file with the submitted record"),
    header: Optional[Path] = typer.Option(None, "--header", help="JSON file with header configuration"),
    metadata: Optional[Path] = typer.Option(None, "--metadata", help="JSON file with PDF metadata"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Render a record to a PDF file."""
    settings = _settings(verbose)
    service = DocumentService(settings)

    fields = _load_fields(fields_file)
    record = _load_record(record_file)
    console.print(f"[bold]Loaded {len(fields)} fields from {fields_file}[/bold]")

    try:
        description = service.create_description(record, fields, _load_header(header), _load_metadata(metadata))
        path = service.renderer.download(description, description.title, output)
    except FormDocError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(f"[green]PDF saved to {path}[/green]")


@app.command()
def describe(
    fields_file: Path = typer.Argument(..., help="JSON file with field definitions"),
    record_file: Path = typer.Argument(..., help="JSON file with the submitted record"),
    header: Optional[Path] = typer.Option(None, "--header", help="JSON file with header configuration"),
    metadata: Optional[Path] = typer.Option(None, "--metadata", help="JSON file with PDF metadata"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output path for description JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print (or save) the document description as JSON."""
    settings = _settings(verbose)
    service = DocumentService(settings)

    try:
        description = service.create_description(
            _load_record(record_file),
            _load_fields(fields_file),
            _load_header(header),
            _load_metadata(metadata),
        )
    except FormDocError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    formatter = JSONFormatter()
    if output:
        formatter.format_to_file(description, output)
        console.print(f"[green]Description saved to {output}[/green]")
    else:
        typer.echo(formatter.format(description).decode())


@app.command()
def sections(
    fields_file: Path = typer.Argument(..., help="JSON file with field definitions"),
    form: bool = typer.Option(False, "--form", help="Group as the entry form does (hides showInForm=false)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show how fields group into sections."""
    settings = _settings(verbose)
    fields = sort_fields(_load_fields(fields_file))
    grouper = group_sections_for_form if form else group_sections_for_document
    grouped = grouper(fields, settings.layout)

    table = Table(title="Form sections" if form else "Document sections")
    table.add_column("#", justify="right")
    table.add_column("Section", style="cyan")
    table.add_column("Fields", style="green")
    table.add_column("Types")

    for i, section in enumerate(grouped, start=1):
        table.add_row(
            str(i),
            section.title,
            ", ".join(f.id for f in section.fields),
            ", ".join(sorted({f.type for f in section.fields})),
        )

    console.print(table)
    console.print(f"\n[bold]{len(grouped)} sections, {sum(len(s.fields) for s in grouped)} fields[/bold]")


if __name__ == "__main__":
    app()
