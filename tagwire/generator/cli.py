"""Command-line interface for tagwire code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tagwire.generator import emitter, parse, python
from tagwire.generator.parser import SchemaCompileError, SchemaValidationError
from tagwire.generator.sizes import SchemaSizeInfo, calculate_sizes
from tagwire.generator.wire import UnsupportedFeatureError, field_header

if TYPE_CHECKING:
    from tagwire.generator.types import Schema

logger = logging.getLogger(__name__)

GENERATION_ERRORS = (SchemaCompileError, SchemaValidationError, UnsupportedFeatureError)


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logging")
def cli(verbose: bool) -> None:
    """tagwire schema code generator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


@cli.command()
@click.option("--language", "-l", required=True, help="Target language (cpp, python)")
@click.option(
    "--input", "-i", "input_files", required=True, multiple=True, help="Input schema file"
)
@click.option("--output", "-o", "output_dir", required=True, help="Output directory")
@click.option(
    "--runtime-import",
    "runtime_import",
    is_flag=False,
    flag_value="tagwire.proto",
    default=None,
    help="Import path for runtime (python only). No value=tagwire.proto, omit=tagwire_runtime",
)
def gen(
    language: str, input_files: tuple[str, ...], output_dir: str, runtime_import: str | None
) -> None:
    """Generate code from one or more schema files."""
    if language == "python":
        options = {"runtime_import": runtime_import or "tagwire_runtime"}
    elif language == "cpp":
        options = {}
    else:
        print(f"Unknown language: {language}")
        sys.exit(1)

    for input_file in input_files:
        try:
            emitter.generate(input_file, output_dir, language, **options)
        except GENERATION_ERRORS as e:
            print(f"{input_file}: {e}")
            sys.exit(1)


@cli.command()
@click.option("--language", "-l", required=True, help="Target language (python)")
@click.option("--output", "-o", "output_path", default=".", help="Output directory")
@click.option("--name", default="tagwire_runtime", help="Runtime folder name")
def runtime(language: str, output_path: str, name: str) -> None:
    """Generate runtime support code."""
    if language == "python":
        runtime_dir = Path(output_path) / name
        runtime_dir.mkdir(parents=True, exist_ok=True)
        for filename, content in python.runtime().items():
            (runtime_dir / filename).write_text(content)
        print(f"Generated Python runtime in {runtime_dir}")
    elif language == "cpp":
        print("C++ headers are self-contained, no runtime needed")
    else:
        print(f"Unknown language: {language}")
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display schema information and serialized sizes."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        schema = parse(text)
        size_info = calculate_sizes(schema)
    except GENERATION_ERRORS as e:
        print(f"{input_file}: {e}")
        sys.exit(1)

    if output_json:
        _output_json(schema, size_info)
    else:
        _output_plain(schema, size_info)


def _format_size(size: int | None) -> str:
    """Format a size value, handling None for unbounded."""
    return "unbounded" if size is None else str(size)


def _output_json(schema: Schema, size_info: SchemaSizeInfo) -> None:
    """Output schema info as JSON."""
    data: dict = {
        "schema": schema.to_dict(),
        "sizes": {},
    }

    for name, message_info in size_info.messages.items():
        data["sizes"][name] = {
            "min_size": message_info.size.min_size,
            "max_size": message_info.size.max_size,
            "kind": message_info.size.kind.value,
        }

    print(json.dumps(data, indent=2))


def _output_plain(schema: Schema, size_info: SchemaSizeInfo) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    console.print(f"[bold cyan]Namespace[/bold cyan] {schema.namespace}")
    console.print()

    for message in schema.messages:
        size = size_info.messages[message.name].size
        if size.is_fixed:
            size_str = f"{size.min_size} bytes"
        else:
            size_str = f"{size.min_size}-{_format_size(size.max_size)} bytes"
        console.print(f"[bold cyan]{message.name}[/bold cyan] [yellow]{size_str}[/yellow]")

        field_table = Table(show_header=True, box=None, padding=(0, 2, 0, 2))
        field_table.add_column("Field", style="white")
        field_table.add_column("Type", style="dim")
        field_table.add_column("Tag", style="green", justify="right")
        field_table.add_column("Header", style="yellow", justify="right")

        for field in message.fields:
            field_table.add_row(
                field.name, field.type.name, str(field.tag), f"0x{field_header(field):02X}"
            )

        console.print(field_table)
        console.print()


def main() -> None:
    """Main entry point."""
    cli(auto_envvar_prefix="TAGWIRE")


if __name__ == "__main__":
    main()
