"""Back-reference wiring.

Runs once after the builder and before the serializer. Every assignment is
unconditional, so running it again leaves the graph unchanged.
"""

from __future__ import annotations

from core.domain.models import Tool


def populate_references(tool: Tool) -> Tool:
    for data_class in tool.data_classes:
        data_class.tool = tool.name

    for task in tool.tasks:
        task.tool = tool.name
        task.settings_class.tool = tool.name
        task.settings_class.task = task.name

    return tool


def references_resolved(tool: Tool) -> bool:
    """True when every back-reference points at its owner."""

    if any(dc.tool != tool.name for dc in tool.data_classes):
        return False
    return all(
        task.tool == tool.name
        and task.settings_class.tool == tool.name
        and task.settings_class.task == task.name
        for task in tool.tasks
    )
