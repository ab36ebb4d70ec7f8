"""Model building utilities.

This module owns every mutation of the `Tool` graph during a run:
parsers register what they produce through the helpers below (so name
collisions are detected in one place), and `build_tool` runs the parsers
sequentially before the merge pass lifts properties shared across tasks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from core.domain.definitions import ToolMetadata
from core.domain.models import (
    CommonTaskProperty,
    CommonTaskPropertySet,
    DataClass,
    Enumeration,
    Property,
    SettingsClass,
    Task,
    Tool,
)
from core.errors import DuplicateDefinitionError
from core.interfaces.parser import SpecificationParser

logger = logging.getLogger(__name__)

ParserFactory = Callable[[], SpecificationParser]
PropertyKey = tuple[str, str, "str | None"]


@dataclass(frozen=True)
class MergePolicy:
    """Thresholds for lifting shared properties out of tasks.

    A block of at least `min_set_size` consecutive properties held by at
    least `min_tasks` tasks becomes a CommonTaskPropertySet; any remaining
    property held by at least `min_tasks` tasks becomes a CommonTaskProperty.
    """

    min_tasks: int = 2
    min_set_size: int = 3


def create_tool(metadata: ToolMetadata) -> Tool:
    return Tool(
        name=metadata.name,
        help=metadata.help,
        official_url=metadata.official_url,
        license=list(metadata.license),
        path_executable=metadata.path_executable,
        package_id=metadata.package_id,
        package_executable=metadata.package_executable,
        environment_executable=metadata.environment_executable,
        custom_executable=metadata.custom_executable,
    )


def register_task(tool: Tool, task: Task) -> Task:
    if tool.get_task(task.name) is not None:
        raise DuplicateDefinitionError("Task", task.name, tool.name)
    tool.tasks.append(task)
    logger.debug("Registered task %s (%d properties)", task.name, len(task.settings_class.properties))
    return task


def register_data_class(tool: Tool, data_class: DataClass) -> DataClass:
    if tool.get_type(data_class.name) is not None:
        raise DuplicateDefinitionError("DataClass", data_class.name, tool.name)
    tool.data_classes.append(data_class)
    return data_class


def register_enumeration(tool: Tool, enumeration: Enumeration) -> Enumeration:
    if tool.get_type(enumeration.name) is not None:
        raise DuplicateDefinitionError("Enumeration", enumeration.name, tool.name)
    tool.enumerations.append(enumeration)
    return enumeration


def add_property(
    owner: SettingsClass | DataClass,
    prop: Property,
    *,
    override: bool = False,
) -> Property:
    """Append `prop` to `owner`, or replace an earlier one in place when `override`."""

    for index, existing in enumerate(owner.properties):
        if existing.name != prop.name:
            continue
        if not override:
            raise DuplicateDefinitionError("Property", prop.name, owner.name, scope="class")
        owner.properties[index] = prop
        return prop
    owner.properties.append(prop)
    return prop


def build_tool(
    *,
    metadata: ToolMetadata,
    parser_factories: Sequence[ParserFactory],
    policy: MergePolicy | None = None,
    references: Iterable[str] = (),
) -> Tool:
    """Create the tool, run every parser against it, then merge shared properties.

    Each parser is constructed inside its own `with` block so a failure in
    one parser never leaves another parser's handle open.
    """

    tool = create_tool(metadata)
    tool.references.extend(references)

    for factory in parser_factories:
        with factory() as parser:
            parser.populate(tool)
            logger.info(
                "%s: %d tasks, %d data classes, %d enumerations so far",
                type(parser).__name__,
                len(tool.tasks),
                len(tool.data_classes),
                len(tool.enumerations),
            )

    merge_common_properties(tool, policy or MergePolicy())
    return tool


# --------------------
# Merge pass
# --------------------


def _contains_block(keys: list[PropertyKey], block: tuple[PropertyKey, ...]) -> int:
    """Start index of `block` inside `keys`, or -1."""

    size = len(block)
    for start in range(len(keys) - size + 1):
        if tuple(keys[start : start + size]) == block:
            return start
    return -1


def _find_best_block(
    tasks: list[Task],
    policy: MergePolicy,
) -> tuple[tuple[PropertyKey, ...], list[Task]] | None:
    keys_by_task = [[p.merge_key() for p in t.settings_class.properties] for t in tasks]

    # Every contiguous block of admissible size, in discovery order.
    holders: dict[tuple[PropertyKey, ...], list[int]] = {}
    for task_index, keys in enumerate(keys_by_task):
        for start in range(len(keys)):
            for end in range(len(keys), start + policy.min_set_size - 1, -1):
                block = tuple(keys[start:end])
                if len({k[0] for k in block}) != len(block):
                    continue
                owners = holders.setdefault(block, [])
                if not owners or owners[-1] != task_index:
                    owners.append(task_index)

    best: tuple[tuple[PropertyKey, ...], list[int]] | None = None
    best_score = 0
    for block, owners in holders.items():
        if len(owners) < policy.min_tasks:
            continue
        score = len(block) * len(owners)
        if score > best_score:
            best, best_score = (block, owners), score

    if best is None:
        return None
    block, owners = best
    return block, [tasks[i] for i in owners]


def _lift_sets(tool: Tool, policy: MergePolicy) -> None:
    while True:
        found = _find_best_block(tool.tasks, policy)
        if found is None:
            return
        block, holders = found

        first = holders[0].settings_class.properties
        start = _contains_block([p.merge_key() for p in first], block)
        common = CommonTaskPropertySet(
            name=f"CommonSet{len(tool.common_task_property_sets) + 1}",
            properties=[p.model_copy(deep=True) for p in first[start : start + len(block)]],
        )
        tool.common_task_property_sets.append(common)

        for task in holders:
            properties = task.settings_class.properties
            index = _contains_block([p.merge_key() for p in properties], block)
            del properties[index : index + len(block)]
            task.common_property_sets.append(common.name)

        logger.debug("Lifted %s (%d properties, %d tasks)", common.name, len(block), len(holders))


def _lift_singles(tool: Tool, policy: MergePolicy) -> None:
    counts: dict[PropertyKey, int] = {}
    first_seen: dict[PropertyKey, Property] = {}
    for task in tool.tasks:
        for prop in task.settings_class.properties:
            key = prop.merge_key()
            counts[key] = counts.get(key, 0) + 1
            first_seen.setdefault(key, prop)

    lifted: dict[PropertyKey, str] = {}
    taken_names = {p.name for p in tool.common_task_properties}
    for key, prop in first_seen.items():
        if counts[key] < policy.min_tasks or prop.name in taken_names:
            continue
        tool.common_task_properties.append(CommonTaskProperty(**prop.model_dump()))
        taken_names.add(prop.name)
        lifted[key] = prop.name

    if not lifted:
        return

    for task in tool.tasks:
        kept: list[Property] = []
        for prop in task.settings_class.properties:
            name = lifted.get(prop.merge_key())
            if name is None:
                kept.append(prop)
            else:
                task.common_properties.append(name)
        task.settings_class.properties = kept


def merge_common_properties(tool: Tool, policy: MergePolicy) -> Tool:
    """Lift shared blocks first, then shared single properties."""

    _lift_sets(tool, policy)
    _lift_singles(tool, policy)
    logger.info(
        "Merge: %d common properties, %d common property sets",
        len(tool.common_task_properties),
        len(tool.common_task_property_sets),
    )
    return tool
