"""CLI entry point (Typer).

One command per input family. Every command loads the tool metadata record,
runs the generation pipeline and prints the post-run summary. Errors of the
pipeline are fatal: they are printed and the process exits with code 1
without writing any document.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import typer
from rich.console import Console

from cli.ui_components import build_summary_table, print_banner
from core.config import AppSettings, load_tool_metadata
from core.errors import ToolSpecError
from core.logging_setup import setup_logging
from core.services.generation_pipeline import (
    GenerationResult,
    generate_from_api_description,
    generate_from_argument_list,
    generate_from_nested_schema,
)

app = typer.Typer(no_args_is_help=True, help="Build normalized tool specifications from CLI/API descriptions.")

_console = Console()

_METADATA_OPTION = typer.Option(..., "--metadata", "-m", exists=True, dir_okay=False, help="Tool metadata (YAML/JSON).")
_OUTPUT_OPTION = typer.Option(None, "--output-folder", "-o", help="Output folder (defaults to TOOLSPEC_OUTPUT_FOLDER).")
_REFERENCE_OPTION = typer.Option(None, "--reference", "-r", help="Reference/version tag of the source.")
_LOG_LEVEL_OPTION = typer.Option(None, "--log-level", help="Logging level (defaults to TOOLSPEC_LOG_LEVEL).")


def _run(log_level: Optional[str], metadata_path: Path, generate: Callable[..., GenerationResult]) -> None:
    settings = AppSettings()
    setup_logging(log_level or settings.log_level, console=Console(stderr=True))

    try:
        metadata = load_tool_metadata(metadata_path)
        print_banner(_console, metadata.name)
        result = generate(settings=settings, metadata=metadata)
    except ToolSpecError as exc:
        _console.print(f"[red]Generation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(build_summary_table(result))


@app.command("argument-list")
def argument_list(
    location: str = typer.Argument(..., help="Folder, file or URL with command definitions."),
    metadata: Path = _METADATA_OPTION,
    reference: Optional[str] = _REFERENCE_OPTION,
    exclude: list[str] = typer.Option([], "--exclude", "-x", help="Definition name to skip (exact match)."),
    output_folder: Optional[Path] = _OUTPUT_OPTION,
    log_level: Optional[str] = _LOG_LEVEL_OPTION,
) -> None:
    """Generate from argument-list records (option/shorthand/value_type/...)."""

    _run(
        log_level,
        metadata,
        lambda **kw: generate_from_argument_list(
            location=location,
            reference=reference,
            excluded_names=exclude,
            output_folder=output_folder,
            **kw,
        ),
    )


@app.command("api-description")
def api_description(
    location: str = typer.Argument(..., help="OpenAPI/Swagger document (file or URL)."),
    metadata: Path = _METADATA_OPTION,
    reference: Optional[str] = _REFERENCE_OPTION,
    output_folder: Optional[Path] = _OUTPUT_OPTION,
    log_level: Optional[str] = _LOG_LEVEL_OPTION,
) -> None:
    """Generate from an API description document."""

    _run(
        log_level,
        metadata,
        lambda **kw: generate_from_api_description(
            location=location,
            reference=reference,
            output_folder=output_folder,
            **kw,
        ),
    )


@app.command("nested-schema")
def nested_schema(
    location: str = typer.Argument(..., help="Nested schema document (file or URL)."),
    metadata: Path = _METADATA_OPTION,
    reference: Optional[str] = _REFERENCE_OPTION,
    output_folder: Optional[Path] = _OUTPUT_OPTION,
    log_level: Optional[str] = _LOG_LEVEL_OPTION,
) -> None:
    """Generate from a nested (chart-style) schema document."""

    _run(
        log_level,
        metadata,
        lambda **kw: generate_from_nested_schema(
            location=location,
            reference=reference,
            output_folder=output_folder,
            **kw,
        ),
    )


def run() -> None:
    app()
