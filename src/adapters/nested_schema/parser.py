"""Parser de esquemas anidados (estilo chart/values schema).

Forma esperada:
- `properties` en la raíz: un comando por clave (una Task cada uno).
- `properties` de cada comando: sus opciones.
- `definitions` / `$defs`: sub-esquemas con nombre, referenciados con `$ref`.

Extensiones:
- `x-separator`: delimitador de un valor repetido/delimitado.
- `x-item-format`: formato de cada elemento de una lista/diccionario.
Ambas se heredan hacia los descendientes que no declaran las suyas.

Cada hoja (primitivo) o nodo estructurado (objeto/array) produce un
`TypeReference`. Un ciclo, vía `$ref` o vía anclas YAML que crean un
documento cíclico en memoria, termina en `RecursiveSchemaError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from adapters.http_client import build_client, is_remote
from core.config import AppSettings
from core.definition_loader import fetch_document, format_location
from core.domain.definitions import ToolMetadata, TypeReference
from core.domain.models import DataClass, Enumeration, Property, SettingsClass, Task, Tool
from core.domain.naming import settings_class_name, synthesized_type_name, to_pascal_case
from core.domain.value_types import SCHEMA_VOCABULARY, BuiltinType, TypeVocabulary, resolve_schema_type
from core.errors import DefinitionFormatError, RecursiveSchemaError
from core.interfaces.parser import SpecificationParser
from core.services.model_builder import (
    add_property,
    register_data_class,
    register_enumeration,
    register_task,
)

logger = logging.getLogger(__name__)

_DEFAULT_DICT_ITEM_FORMAT = "{key}={value}"


class NestedSchemaParser(SpecificationParser):
    """Recorre el esquema recursivamente y produce Tasks, DataClasses y Enumerations."""

    def __init__(
        self,
        metadata: ToolMetadata,
        location: str | Path,
        *,
        reference: str | None = None,
        vocabulary: TypeVocabulary = SCHEMA_VOCABULARY,
        settings: AppSettings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._metadata = metadata
        self._location = location
        self._reference = reference
        self._vocabulary = vocabulary

        remote = is_remote(format_location(location, reference))
        self._owns_client = client is None and remote
        self._client = build_client(settings) if self._owns_client else client

        self._definitions: dict[str, Any] = {}
        self._memo: dict[str, TypeReference] = {}
        self._reserved: frozenset[str] = frozenset()

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
        self._client = None

    def populate(self, tool: Tool) -> None:
        document = fetch_document(self._location, reference=self._reference, client=self._client)
        if not isinstance(document, dict):
            raise DefinitionFormatError(f"Nested schema '{self._location}' is not a mapping")

        if not tool.help:
            tool.help = document.get("description") or document.get("title")

        definitions = document.get("definitions") or document.get("$defs") or {}
        if not isinstance(definitions, dict):
            raise DefinitionFormatError("'definitions' must be a mapping")
        self._definitions = definitions
        self._reserved = frozenset(to_pascal_case(str(n)) for n in definitions)

        commands = document.get("properties") or {}
        for key, command in commands.items():
            if not isinstance(command, dict):
                raise DefinitionFormatError(f"Command '{key}' is not a mapping")
            register_task(tool, self._task(tool, key, command))

    def _task(self, tool: Tool, key: str, command: dict[str, Any]) -> Task:
        name = to_pascal_case(key)
        settings = SettingsClass(name=settings_class_name(self._metadata.name, name))
        for option_key, option in (command.get("properties") or {}).items():
            ref = self.walk(tool, option, path=(name, to_pascal_case(option_key)))
            add_property(settings, _property(option_key, ref, option))

        return Task(
            name=name,
            help=command.get("description"),
            definite_argument=command.get("x-definite-argument") or key,
            settings_class=settings,
        )

    def walk(
        self,
        tool: Tool,
        node: Any,
        *,
        path: tuple[str, ...],
        named: str | None = None,
        separator: str | None = None,
        item_format: str | None = None,
        active: tuple[str, ...] = (),
        node_ids: frozenset[int] = frozenset(),
    ) -> TypeReference:
        """Produce the TypeReference of `node`, registering the types it declares."""

        if not isinstance(node, dict):
            raise DefinitionFormatError(f"Schema node at {'.'.join(path)} is not a mapping")
        if id(node) in node_ids:
            raise RecursiveSchemaError(list(path))
        node_ids = node_ids | {id(node)}

        separator = _separator(node, path) or separator
        item_format = node.get("x-item-format") or item_format

        if "$ref" in node:
            target = self._follow(tool, str(node["$ref"]), active=active)
            return TypeReference(
                type=target.type,
                separator=separator or target.separator,
                item_format=item_format or target.item_format,
            )

        type_name = named or synthesized_type_name(tool, "".join(path), self._reserved)

        if "enum" in node:
            enumeration = register_enumeration(
                tool, Enumeration(name=type_name, values=[str(v) for v in node["enum"]])
            )
            return TypeReference(type=enumeration.name, separator=separator, item_format=item_format)

        if node.get("type") == "array":
            item = self.walk(
                tool,
                node.get("items") or {},
                path=(*path, "Item"),
                separator=separator,
                item_format=item_format,
                active=active,
                node_ids=node_ids,
            )
            return TypeReference(
                type=BuiltinType.list_of(item.type),
                separator=separator,
                item_format=item_format or item.item_format,
            )

        if node.get("type") == "object" or "properties" in node:
            if node.get("properties"):
                data_class = register_data_class(tool, DataClass(name=type_name, help=node.get("description")))
                for child_key, child in node["properties"].items():
                    ref = self.walk(
                        tool,
                        child,
                        path=(type_name, to_pascal_case(child_key)),
                        separator=separator,
                        item_format=item_format,
                        active=active,
                        node_ids=node_ids,
                    )
                    add_property(data_class, _property(child_key, ref, child))
                return TypeReference(type=data_class.name, separator=separator, item_format=item_format)

            extra = node.get("additionalProperties")
            value_type = BuiltinType.STRING.value
            if isinstance(extra, dict):
                value_type = self.walk(
                    tool,
                    extra,
                    path=(*path, "Value"),
                    separator=separator,
                    item_format=item_format,
                    active=active,
                    node_ids=node_ids,
                ).type
            return TypeReference(
                type=BuiltinType.dict_of(value_type),
                separator=separator,
                item_format=item_format or _DEFAULT_DICT_ITEM_FORMAT,
            )

        return TypeReference(
            type=resolve_schema_type(self._vocabulary, node),
            separator=separator,
            item_format=item_format,
        )

    def _follow(self, tool: Tool, ref: str, *, active: tuple[str, ...]) -> TypeReference:
        name = ref.rsplit("/", 1)[-1]
        if name in active:
            raise RecursiveSchemaError([*active, name])
        if name in self._memo:
            return self._memo[name]

        target = self._definitions.get(name)
        if target is None:
            raise DefinitionFormatError(f"Unresolved schema reference '{ref}'")

        pascal = to_pascal_case(name)
        resolved = self.walk(tool, target, path=(pascal,), named=pascal, active=(*active, name))
        self._memo[name] = resolved
        return resolved


def _separator(node: dict[str, Any], path: tuple[str, ...]) -> str | None:
    value = node.get("x-separator")
    if value is None:
        return None
    if not isinstance(value, str) or len(value) != 1:
        raise DefinitionFormatError(f"x-separator at {'.'.join(path)} must be a single character")
    return value


def _property(key: str, ref: TypeReference, node: Any) -> Property:
    node = node if isinstance(node, dict) else {}
    default = node.get("default")
    if isinstance(default, bool):
        default = str(default).lower()
    return Property(
        name=to_pascal_case(key),
        type=ref.type,
        default=None if default is None else str(default),
        help=node.get("description"),
        format=f"--{key}={{value}}",
        separator=ref.separator,
        item_format=ref.item_format,
    )
