"""Command-line interface for SizedOnDisk code generation."""

from __future__ import annotations

import json
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sizederive.generator import GeneratorConfig, derive_all, parse, render_file
from sizederive.generator.config import DEFAULT_IGNORE_ATTRIBUTE, DEFAULT_TRAIT_PATH
from sizederive.generator.fields import is_ignored
from sizederive.generator.types import GeneratedFile, GeneratorError, TypeDeclaration


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """SizedOnDisk implementation generator."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _read_declarations(input_file: str) -> list[TypeDeclaration]:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()
    return parse(text)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input declaration file")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option(
    "--all",
    "derive_every",
    is_flag=True,
    default=False,
    help="Generate for every declaration, not only #[derive(SizedOnDisk)] ones",
)
@click.option("--trait-path", default=DEFAULT_TRAIT_PATH, show_default=True, help="Path of the size trait")
@click.option(
    "--ignore-attr",
    default=DEFAULT_IGNORE_ATTRIBUTE,
    show_default=True,
    help="Field attribute that excludes a field from the sum",
)
@click.option(
    "--origins",
    "origins_file",
    default=None,
    help="Also write a JSON map from output line to the originating field",
)
def gen(
    input_file: str,
    output_file: str,
    derive_every: bool,
    trait_path: str,
    ignore_attr: str,
    origins_file: str | None,
) -> None:
    """Generate SizedOnDisk implementations from a declaration file."""
    config = GeneratorConfig(trait_path=trait_path, ignore_attribute=ignore_attr)

    try:
        decls = _read_declarations(input_file)
        impls = derive_all(decls, config, only_derived=not derive_every)
    except GeneratorError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    generated = render_file(impls)

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated.code)

    if origins_file is not None:
        with open(origins_file, "w", encoding="utf-8") as f:
            f.write(_origins_json(generated))


def _origins_json(generated: GeneratedFile) -> str:
    """Serialize the line map of a generated file."""
    data: dict = {}

    for line, origin in sorted(generated.origins.items()):
        position = origin.source.position
        data[str(line)] = {
            "type": origin.type_name,
            "field": origin.source.label,
            "line": position.line if position else None,
            "column": position.column if position else None,
            "description": origin.describe(),
        }

    return json.dumps(data, indent=2)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input declaration file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--trait-path", default=DEFAULT_TRAIT_PATH, show_default=True, help="Path of the size trait")
@click.option(
    "--ignore-attr",
    default=DEFAULT_IGNORE_ATTRIBUTE,
    show_default=True,
    help="Field attribute that excludes a field from the sum",
)
def info(input_file: str, output_json: bool, trait_path: str, ignore_attr: str) -> None:
    """Display declarations and which fields contribute to their size."""
    config = GeneratorConfig(trait_path=trait_path, ignore_attribute=ignore_attr)

    try:
        decls = _read_declarations(input_file)
    except GeneratorError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if output_json:
        _output_json(decls, config)
    else:
        _output_plain(decls, config)


def _output_json(decls: list[TypeDeclaration], config: GeneratorConfig) -> None:
    """Output declaration info as JSON."""
    data: dict = {}

    for decl in decls:
        entry = decl.to_dict(encode_json=True)
        entry["ignored"] = [f.label for f in decl.fields if is_ignored(f, config.ignore_attribute)]
        entry["derived"] = decl.derives_trait(config.trait_name)
        data[decl.name] = entry

    print(json.dumps(data, indent=2))


def _output_plain(decls: list[TypeDeclaration], config: GeneratorConfig) -> None:
    """Output declaration info using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Declarations[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Name", style="white")
    table.add_column("Shape", style="dim")
    table.add_column("Generics", style="yellow")
    table.add_column("Summed", style="green")
    table.add_column("Ignored", style="red")
    table.add_column("Derived", style="green", justify="right")

    for decl in decls:
        summed = [f.label for f in decl.fields if not is_ignored(f, config.ignore_attribute)]
        ignored = [f.label for f in decl.fields if is_ignored(f, config.ignore_attribute)]
        if decl.shape.is_variant:
            summed_str = "unsupported"
        else:
            summed_str = ", ".join(summed) if summed else "-"

        table.add_row(
            decl.name,
            decl.shape.value,
            decl.generics.type_generics(),
            summed_str,
            ", ".join(ignored),
            "yes" if decl.derives_trait(config.trait_name) else "",
        )

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
