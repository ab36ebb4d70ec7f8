"""Naming helpers shared by the parsers."""

from __future__ import annotations

import re
from collections.abc import Collection

from core.domain.models import Tool

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


def to_pascal_case(value: str) -> str:
    """`add-host` -> `AddHost`, `image build` -> `ImageBuild`, `getPet` -> `GetPet`.

    Inner capitals are kept, so camelCase identifiers survive unchanged apart
    from the first letter.
    """

    words = [w for w in _WORD_SPLIT.split(value) if w]
    return "".join(w[0].upper() + w[1:] for w in words)


def settings_class_name(tool_name: str, task_name: str) -> str:
    return f"{to_pascal_case(tool_name)}{task_name}Settings"


def synthesized_type_name(tool: Tool, base: str, reserved: Collection[str]) -> str:
    """Name for an inline type: `base`, else `base2`, `base3`...

    Names declared by the document (`reserved`) and types already on the tool
    are never reused.
    """

    candidate = base
    index = 2
    while candidate in reserved or tool.get_type(candidate) is not None:
        candidate = f"{base}{index}"
        index += 1
    return candidate


def parameter_property_name(raw_name: str, location: str, taken: dict[str, str]) -> str:
    """PascalCase name of a parameter, suffixed with its location when another location took it.

    `taken` maps property names already used in the class to their location.
    """

    name = to_pascal_case(raw_name)
    if name in taken and taken[name] != location:
        return f"{name}{to_pascal_case(location)}"
    return name
