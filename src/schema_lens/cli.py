"""Command-line interface for schema-lens.

This module provides a CLI for displaying the tree compiled from a JSON
Schema document, estimating its size and exporting the full build.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table as RichTable
from typing_extensions import Annotated

from schema_lens.config import Config
from schema_lens.coordinator.messages import BuildRequest, run_full_build
from schema_lens.render.rows import Row, fill_names, iter_rows
from schema_lens.schema.loader import load_schema
from schema_lens.schema_tree.builder import contains_all_of, estimate_node_count
from schema_lens.schema_tree.nodes import SchemaTree

app = typer.Typer(
    name="schema-lens",
    help="Compile JSON Schema documents into display-ready trees",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

SchemaFile = Annotated[
    Path, typer.Argument(help="Path to a JSON Schema document", dir_okay=False)
]
MaxRows = Annotated[
    Optional[int], typer.Option("--max-rows", "-n", help="Rows built before delegating", min=0)
]
MergeAllOf = Annotated[
    Optional[bool],
    typer.Option("--merge-all-of/--no-merge-all-of", help="Merge allOf combiners"),
]
Verbose = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


def configure_logging(verbose: bool) -> None:
    """Route log records through rich, at DEBUG level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def get_config(max_rows: Optional[int] = None, merge_all_of: Optional[bool] = None) -> Config:
    """Get configuration from environment or CLI options.

    Args:
        max_rows: Override the row threshold from environment
        merge_all_of: Override allOf merging from environment

    Returns:
        Config instance
    """
    config = Config()

    # Override config values if provided via CLI
    if max_rows is not None:
        config.max_rows = max_rows
    if merge_all_of is not None:
        config.merge_all_of = merge_all_of

    return config


def format_row_for_display(row: Row) -> tuple[str, str, str]:
    """Format a row for display.

    Args:
        row: The row to format

    Returns:
        Tuple of (indented name, type label, pointer)
    """
    prefix = "  " * row.level
    marker = "+ " if row.expandable else "  "
    return (f"{prefix}{marker}{row.name or '<root>'}", row.label, row.pointer)


def render_text(tree: SchemaTree) -> str:
    lines = []
    for row in iter_rows(tree):
        name, label, pointer = format_row_for_display(row)
        lines.append(f"{name:40} {label:30} {pointer}")
    return "\n".join(lines)


def tree_to_json(tree: SchemaTree) -> dict:
    """Serialize a tree as plain JSON data (rows plus metadata)."""
    metadata = {}
    for node in tree.nodes:
        record = tree.metadata[node.id]
        metadata[node.id] = {
            "path": list(record.path),
            "schema": record.fragment.model_dump(mode="json", by_alias=True, exclude_none=True),
            "annotations": record.annotations,
            "validations": record.validations,
        }
    return {
        "nodes": [node.model_dump(mode="json") for node in tree.nodes],
        "metadata": metadata,
    }


@app.command()
def show(
    schema_file: SchemaFile,
    max_rows: MaxRows = None,
    merge_all_of: MergeAllOf = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: table or text")
    ] = "table",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path (stdout if not specified)"),
    ] = None,
    timeout: Annotated[
        Optional[float], typer.Option("--timeout", help="Seconds to wait for the full build")
    ] = None,
    verbose: Verbose = False,
) -> None:
    """Display the tree compiled from a JSON Schema document.

    Small schemas are built directly. Larger ones are pre-rendered up to
    --max-rows rows while the full build runs in the background; the full
    tree is shown once it arrives.

    Example:
        schema-lens show pet.schema.json

        schema-lens show pet.schema.json --max-rows 50 --format text --output tree.txt
    """
    configure_logging(verbose)
    try:
        schema = load_schema(schema_file)
        config = get_config(max_rows, merge_all_of)

        with config.get_executor() as executor:
            coordinator = config.get_coordinator(executor)

            tree = coordinator.build(schema)
            if coordinator.latest_instance_id is not None:
                console.print(
                    f"[blue]Pre-rendered {len(tree)} rows, waiting for the full build...[/blue]"
                )
                if not coordinator.wait(timeout):
                    console.print("[yellow]Full build did not finish, showing pre-render[/yellow]")
            tree = fill_names(coordinator.tree)

        if format == "table" and output is None:
            rich_table = RichTable(title=f"Schema: {schema_file}")
            rich_table.add_column("Name", style="cyan")
            rich_table.add_column("Type", style="magenta")
            rich_table.add_column("Path", style="yellow")
            for row in iter_rows(tree):
                rich_table.add_row(*format_row_for_display(row))
            console.print(rich_table)
        elif output:
            output.write_text(render_text(tree))
            console.print(f"[green]✓[/green] Tree written to {output}")
        else:
            typer.echo(render_text(tree))

    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def estimate(
    schema_file: SchemaFile,
    max_rows: MaxRows = None,
    merge_all_of: MergeAllOf = None,
    verbose: Verbose = False,
) -> None:
    """Estimate the size of the tree and report whether the build is delegated.

    Example:
        schema-lens estimate pet.schema.json --max-rows 100
    """
    configure_logging(verbose)
    try:
        schema = load_schema(schema_file)
        config = get_config(max_rows, merge_all_of)

        node_count = estimate_node_count(schema)
        has_all_of = contains_all_of(schema)
        delegated = node_count > config.max_rows or (has_all_of and config.merge_all_of)

        console.print(f"Estimated rows: {node_count}")
        console.print(f"allOf present: {'yes' if has_all_of else 'no'}")
        console.print(f"Max rows: {config.max_rows}")
        if delegated:
            console.print("[yellow]Full build would be delegated[/yellow]")
        else:
            console.print("[green]Full build runs synchronously[/green]")

    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def export(
    schema_file: SchemaFile,
    merge_all_of: MergeAllOf = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path (stdout if not specified)"),
    ] = None,
    verbose: Verbose = False,
) -> None:
    """Export the full tree and its metadata as JSON.

    Example:
        schema-lens export pet.schema.json --output tree.json
    """
    configure_logging(verbose)
    try:
        schema = load_schema(schema_file)
        config = get_config(merge_all_of=merge_all_of)

        request = BuildRequest(instance_id="export", document=schema, merge_all_of=config.merge_all_of)
        tree = fill_names(run_full_build(request).to_tree())
        text = json.dumps(tree_to_json(tree), indent=2)

        if output:
            output.write_text(text)
            console.print(f"[green]✓[/green] Tree written to {output}")
        else:
            typer.echo(text)

    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
