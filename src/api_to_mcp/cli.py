"""
Command-line interface for inspecting the template data of an API description.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
import yaml

from .adapters import Adapter, PostmanAdapter, create_adapter
from .config import get_settings
from .dereferencer import PathDereferencer
from .exceptions import AdapterError
from .loader import load_document
from .logging import configure_logging
from .models import TemplateData
from .postman import Strategy

app = typer.Typer(
    help="Convert OpenAPI documents and Postman collections to MCP template data"
)


class SourceFormat(str, Enum):
    AUTO = "auto"
    OPENAPI = "openapi"
    POSTMAN = "postman"


@app.callback()
def _setup(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level, e.g. DEBUG"
    ),
) -> None:
    configure_logging(log_level or get_settings().log_level)


def _save(content: dict, path: Optional[Path]) -> None:
    """Print content as YAML, or save it to a YAML or JSON file.

    Args:
        content: The content to save
        path: Output file; JSON is written for a .json suffix

    Raises:
        typer.Exit: If the file cannot be saved
    """
    if path is None:
        typer.echo(yaml.safe_dump(content, sort_keys=False))
        return
    try:
        with open(path, "w") as f:
            if path.suffix == ".json":
                json.dump(content, f, indent=2)
            else:
                yaml.safe_dump(content, f, sort_keys=False)
    except OSError as e:
        typer.echo(f"Error saving to {path}: {str(e)}", err=True)
        raise typer.Exit(1)


def _run(adapter: Adapter, output: Optional[Path]) -> None:
    try:
        data: TemplateData = adapter.to_template_data()
    except AdapterError as e:
        typer.echo(f"Error: {str(e)}", err=True)
        raise typer.Exit(1)

    for warning in data.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    _save(data.model_dump(mode="json"), output)
    if output is not None:
        typer.echo(f"Successfully converted {adapter.get_source_type()} source to {output}")


@app.command()
def convert(
    source: str = typer.Argument(
        ..., help="Path or URL of an OpenAPI document or Postman collection"
    ),
    fmt: SourceFormat = typer.Option(
        SourceFormat.AUTO, "--format", "-f", help="Source format"
    ),
    strategy: Strategy = typer.Option(
        Strategy.SYNTHESIS, "--strategy", help="Postman conversion strategy"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path to save the template data. If not provided, YAML is printed to stdout",
    ),
) -> None:
    """Convert an OpenAPI document or Postman collection to template data."""
    try:
        adapter = create_adapter(source, fmt=fmt.value, strategy=strategy)
    except AdapterError as e:
        typer.echo(f"Error: {str(e)}", err=True)
        raise typer.Exit(1)
    _run(adapter, output)


@app.command()
def postman(
    collection_id: str = typer.Argument(..., help="ID of the collection in the Postman API"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Postman API key"),
    strategy: Strategy = typer.Option(
        Strategy.SYNTHESIS, "--strategy", help="Conversion strategy"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Path to save the template data"
    ),
) -> None:
    """Fetch a collection from the Postman API and convert it."""
    _run(PostmanAdapter(collection_id, api_key=api_key, strategy=strategy), output)


@app.command()
def dereference(
    input_file: Path = typer.Argument(..., help="Path to the input OpenAPI document"),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Path to save the dereferenced document. If not provided, will use input filename with .dereferenced.yaml suffix",
    ),
) -> None:
    """Resolve the $refs of an OpenAPI document."""
    if not input_file.exists():
        typer.echo(f"Input file not found: {input_file}", err=True)
        raise typer.Exit(1)

    if output_file is None:
        output_file = input_file.parent / f"{input_file.stem}.dereferenced.yaml"

    try:
        spec = load_document(input_file)
        result = PathDereferencer(spec, base_path=input_file.parent).dereference()
    except AdapterError as e:
        typer.echo(f"Error dereferencing spec: {str(e)}", err=True)
        raise typer.Exit(1)

    _save(result, output_file)
    typer.echo(f"Successfully dereferenced {input_file} to {output_file}")


def main():
    """Entry point for the CLI."""
    app()
