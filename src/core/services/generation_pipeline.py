"""Specification generation orchestration.

This module strings the stages together for one tool:
loader -> parsers -> builder (merge) -> resolver -> serializer.
The CLI delegates everything here, which keeps side-effects (printing,
tables) out of the core logic and makes the pipeline reusable from tests
and batch jobs. Any stage failure propagates before the serializer runs, so
a run produces either a complete document or none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from adapters.api_description import ApiDescriptionParser
from adapters.argument_list import ArgumentListParser
from adapters.nested_schema import NestedSchemaParser
from adapters.tool_serializer import save_tool
from core.config import AppSettings
from core.definition_loader import format_location, load_definitions
from core.domain.definitions import ToolMetadata
from core.domain.models import Tool
from core.domain.value_types import ARGUMENT_LIST_VOCABULARY, SCHEMA_VOCABULARY, TypeVocabulary
from core.services.model_builder import ParserFactory, build_tool
from core.services.reference_resolver import populate_references

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationSummary:
    """Post-run counts relied upon by callers."""

    tasks: int
    data_classes: int
    enumerations: int
    common_task_properties: int
    common_task_property_sets: int

    @classmethod
    def of(cls, tool: Tool) -> "GenerationSummary":
        return cls(
            tasks=len(tool.tasks),
            data_classes=len(tool.data_classes),
            enumerations=len(tool.enumerations),
            common_task_properties=len(tool.common_task_properties),
            common_task_property_sets=len(tool.common_task_property_sets),
        )


@dataclass
class GenerationResult:
    """Output of a pipeline invocation."""

    tool: Tool
    output_path: Path
    summary: GenerationSummary = field(init=False)

    def __post_init__(self) -> None:
        self.summary = GenerationSummary.of(self.tool)


def output_path_for(tool_name: str, output_folder: Path) -> Path:
    return output_folder / f"{tool_name}.json"


def generate_specification(
    *,
    settings: AppSettings,
    metadata: ToolMetadata,
    parser_factories: Sequence[ParserFactory],
    references: Sequence[str] = (),
    output_folder: Path | None = None,
) -> GenerationResult:
    logger.info("Generating %s specifications...", metadata.name)

    tool = build_tool(
        metadata=metadata,
        parser_factories=parser_factories,
        policy=settings.merge_policy(),
        references=references,
    )
    populate_references(tool)

    output_path = output_path_for(tool.name, output_folder or settings.output_folder)
    save_tool(tool=tool, output_path=output_path)

    result = GenerationResult(tool=tool, output_path=output_path)
    logger.info("Generation finished: %s", output_path)
    return result


def generate_from_argument_list(
    *,
    settings: AppSettings,
    metadata: ToolMetadata,
    location: str | Path,
    reference: str | None = None,
    excluded_names: Sequence[str] = (),
    vocabulary: TypeVocabulary = ARGUMENT_LIST_VOCABULARY,
    output_folder: Path | None = None,
) -> GenerationResult:
    definitions = load_definitions(location, reference=reference, excluded_names=excluded_names)
    return generate_specification(
        settings=settings,
        metadata=metadata,
        parser_factories=[lambda: ArgumentListParser(definitions, vocabulary=vocabulary)],
        references=[format_location(location, reference)],
        output_folder=output_folder,
    )


def generate_from_api_description(
    *,
    settings: AppSettings,
    metadata: ToolMetadata,
    location: str | Path,
    reference: str | None = None,
    vocabulary: TypeVocabulary = SCHEMA_VOCABULARY,
    output_folder: Path | None = None,
) -> GenerationResult:
    return generate_specification(
        settings=settings,
        metadata=metadata,
        parser_factories=[
            lambda: ApiDescriptionParser(
                metadata, location, reference=reference, vocabulary=vocabulary, settings=settings
            )
        ],
        references=[format_location(location, reference)],
        output_folder=output_folder,
    )


def generate_from_nested_schema(
    *,
    settings: AppSettings,
    metadata: ToolMetadata,
    location: str | Path,
    reference: str | None = None,
    vocabulary: TypeVocabulary = SCHEMA_VOCABULARY,
    output_folder: Path | None = None,
) -> GenerationResult:
    return generate_specification(
        settings=settings,
        metadata=metadata,
        parser_factories=[
            lambda: NestedSchemaParser(
                metadata, location, reference=reference, vocabulary=vocabulary, settings=settings
            )
        ],
        references=[format_location(location, reference)],
        output_folder=output_folder,
    )
