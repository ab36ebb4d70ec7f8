"""Parser de descripciones de API (OpenAPI 3 / Swagger 2).

Por qué un único parser parametrizado:
- Lo que cambia entre tools es la metadata estática (`ToolMetadata`) y la
  ubicación del documento, no la estrategia de ingesta.

Dos pasadas:
1. Se recogen todos los esquemas con nombre (enum -> Enumeration, objeto ->
   DataClass, resto -> alias primitivo). Las referencias `$ref` encontradas
   mientras tanto quedan diferidas.
2. Con todos los componentes cargados se resuelven las referencias diferidas;
   los esquemas pueden referenciarse en cualquier orden.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from adapters.http_client import build_client, is_remote
from core.config import AppSettings
from core.definition_loader import fetch_document, format_location
from core.domain.definitions import ToolMetadata
from core.domain.models import DataClass, Enumeration, Property, SettingsClass, Task, Tool
from core.domain.naming import (
    parameter_property_name,
    settings_class_name,
    synthesized_type_name,
    to_pascal_case,
)
from core.domain.value_types import (
    SCHEMA_VOCABULARY,
    BuiltinType,
    TypeVocabulary,
    resolve_schema_type,
)
from core.errors import DefinitionFormatError, RecursiveSchemaError
from core.interfaces.parser import SpecificationParser
from core.services.model_builder import (
    add_property,
    register_data_class,
    register_enumeration,
    register_task,
)

logger = logging.getLogger(__name__)

_HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
_PLACEHOLDER = "{}"


@dataclass
class _Deferred:
    target: Property
    ref: str
    template: str


@dataclass(frozen=True)
class _Component:
    kind: str  # "dataclass" | "enumeration" | "alias"
    name: str
    schema: dict[str, Any]


class ApiDescriptionParser(SpecificationParser):
    """Recorre operaciones -> Tasks, parámetros -> Properties y componentes -> tipos."""

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

        self._document: dict[str, Any] = {}
        self._components: dict[str, _Component] = {}
        self._deferred: list[_Deferred] = []
        self._aliases: dict[str, str] = {}
        self._reserved: frozenset[str] = frozenset()

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
        self._client = None

    def populate(self, tool: Tool) -> None:
        document = fetch_document(self._location, reference=self._reference, client=self._client)
        if not isinstance(document, dict):
            raise DefinitionFormatError(f"API description '{self._location}' is not a mapping")
        self._document = document

        info = document.get("info") if isinstance(document.get("info"), dict) else {}
        if not tool.help:
            tool.help = info.get("description") or info.get("title")

        self._reserved = frozenset(to_pascal_case(str(n)) for n in self._schemas())
        self._collect_components(tool)
        self._collect_operations(tool)
        self._resolve_deferred(tool)

        logger.info(
            "API description: %d components, %d deferred references resolved",
            len(self._components),
            len(self._deferred),
        )

    # --------------------
    # Pass 1: components and operations
    # --------------------
    def _schemas(self) -> dict[str, Any]:
        components = self._document.get("components")
        if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
            return components["schemas"]
        definitions = self._document.get("definitions")
        return definitions if isinstance(definitions, dict) else {}

    def _collect_components(self, tool: Tool) -> None:
        for raw_name, schema in self._schemas().items():
            if not isinstance(schema, dict):
                raise DefinitionFormatError(f"Schema '{raw_name}' is not a mapping")
            name = to_pascal_case(raw_name)

            if "enum" in schema:
                register_enumeration(tool, Enumeration(name=name, values=[str(v) for v in schema["enum"]]))
                self._components[raw_name] = _Component("enumeration", name, schema)
            elif _is_object(schema):
                self._components[raw_name] = _Component("dataclass", name, schema)
                data_class = register_data_class(
                    tool, DataClass(name=name, help=schema.get("description"))
                )
                for prop_name, prop_schema in (schema.get("properties") or {}).items():
                    add_property(
                        data_class,
                        self._property(tool, prop_name, prop_schema, context=f"{name}{to_pascal_case(prop_name)}"),
                    )
            else:
                self._components[raw_name] = _Component("alias", name, schema)

    def _collect_operations(self, tool: Tool) -> None:
        paths = self._document.get("paths") or {}
        for path, item in paths.items():
            if not isinstance(item, dict):
                continue
            shared = item.get("parameters") or []
            for method, operation in item.items():
                if method.lower() not in _HTTP_METHODS or not isinstance(operation, dict):
                    continue
                register_task(tool, self._task(tool, method, path, operation, shared))

    def _task(
        self,
        tool: Tool,
        method: str,
        path: str,
        operation: dict[str, Any],
        shared: list[Any],
    ) -> Task:
        operation_id = operation.get("operationId") or f"{method} {path}"
        name = to_pascal_case(operation_id)
        settings = SettingsClass(name=settings_class_name(self._metadata.name, name))

        # Operation-level parameters replace path-level ones with the same name/location.
        parameters: dict[tuple[str, str], dict[str, Any]] = {}
        for raw in [*shared, *(operation.get("parameters") or [])]:
            param = self._dereference(raw)
            parameters[(str(param.get("name")), str(param.get("in")))] = param

        locations: dict[str, str] = {}
        for param in parameters.values():
            location = str(param.get("in"))
            if location == "body":
                prop_name = parameter_property_name("body", location, locations)
                prop = self._property(
                    tool, "body", param.get("schema") or {}, name=prop_name, context=f"{name}{prop_name}"
                )
            else:
                raw_name = str(param.get("name"))
                prop_name = parameter_property_name(raw_name, location, locations)
                schema = param.get("schema") if isinstance(param.get("schema"), dict) else param
                prop = self._property(tool, raw_name, schema, name=prop_name, context=f"{name}{prop_name}")
            prop.help = param.get("description") or prop.help
            locations.setdefault(prop.name, location)
            add_property(settings, prop)

        body = self._dereference(operation.get("requestBody")) if operation.get("requestBody") else None
        if body:
            schema = _json_schema(body)
            if schema is not None:
                prop_name = parameter_property_name("body", "body", locations)
                prop = self._property(tool, "body", schema, name=prop_name, context=f"{name}{prop_name}")
                prop.help = body.get("description") or prop.help
                locations.setdefault(prop.name, "body")
                add_property(settings, prop)

        return Task(
            name=name,
            help=operation.get("summary") or operation.get("description"),
            definite_argument=operation_id,
            settings_class=settings,
        )

    def _property(
        self,
        tool: Tool,
        raw_name: str,
        schema: Any,
        *,
        context: str,
        name: str | None = None,
    ) -> Property:
        if not isinstance(schema, dict):
            schema = {}
        template, ref = self._describe(tool, schema, context=context)
        default = schema.get("default")
        prop = Property(
            name=name or to_pascal_case(raw_name),
            type=template if ref is None else ref,
            default=None if default is None else _stringify(default),
            help=schema.get("description"),
            format=f"--{raw_name}={{value}}",
        )
        if ref is not None:
            self._deferred.append(_Deferred(target=prop, ref=ref, template=template))
        return prop

    def _describe(self, tool: Tool, schema: dict[str, Any], *, context: str) -> tuple[str, str | None]:
        """Type template plus the deferred component name it contains, if any."""

        if "$ref" in schema:
            return _PLACEHOLDER, _component_name(schema["$ref"])

        if "enum" in schema:
            enumeration = register_enumeration(
                tool,
                Enumeration(name=self._inline_name(tool, context), values=[str(v) for v in schema["enum"]]),
            )
            return enumeration.name, None

        if schema.get("type") == "array":
            items = schema.get("items") if isinstance(schema.get("items"), dict) else {}
            item_type, ref = self._describe(tool, items, context=f"{context}Item")
            return BuiltinType.list_of(item_type), ref

        if _is_object(schema):
            if schema.get("properties"):
                data_class = register_data_class(
                    tool, DataClass(name=self._inline_name(tool, context), help=schema.get("description"))
                )
                for prop_name, prop_schema in schema["properties"].items():
                    add_property(
                        data_class,
                        self._property(
                            tool, prop_name, prop_schema, context=f"{data_class.name}{to_pascal_case(prop_name)}"
                        ),
                    )
                return data_class.name, None
            extra = schema.get("additionalProperties")
            item_type, ref = (
                self._describe(tool, extra, context=f"{context}Value")
                if isinstance(extra, dict)
                else (BuiltinType.STRING.value, None)
            )
            return BuiltinType.dict_of(item_type), ref

        return resolve_schema_type(self._vocabulary, schema), None

    def _inline_name(self, tool: Tool, context: str) -> str:
        return synthesized_type_name(tool, context, self._reserved)

    def _dereference(self, node: Any) -> dict[str, Any]:
        """Follow a local `$ref` (parameters, requestBodies) to its target."""

        seen: list[str] = []
        while isinstance(node, dict) and "$ref" in node:
            ref = str(node["$ref"])
            if ref in seen:
                raise RecursiveSchemaError([*seen, ref])
            seen.append(ref)
            node = _resolve_pointer(self._document, ref)
        if not isinstance(node, dict):
            raise DefinitionFormatError(f"Reference {seen[-1] if seen else node!r} does not resolve to a mapping")
        return node

    # --------------------
    # Pass 2: deferred references
    # --------------------
    def _resolve_deferred(self, tool: Tool) -> None:
        for deferred in self._deferred:
            resolved = self._resolve_component(tool, deferred.ref, [])
            deferred.target.type = deferred.template.replace(_PLACEHOLDER, resolved, 1)

    def _resolve_component(self, tool: Tool, ref: str, chain: list[str]) -> str:
        if ref in chain:
            raise RecursiveSchemaError([*chain, ref])

        component = self._components.get(ref)
        if component is None:
            # Registered by a parser that ran earlier against the same tool.
            known = tool.get_type(to_pascal_case(ref))
            if known is not None:
                return known.name
            raise DefinitionFormatError(f"Unresolved schema reference '{ref}' in '{self._location}'")

        if component.kind != "alias":
            return component.name
        if ref in self._aliases:
            return self._aliases[ref]

        template, nested = self._describe(tool, component.schema, context=component.name)
        if nested is not None:
            template = template.replace(_PLACEHOLDER, self._resolve_component(tool, nested, [*chain, ref]), 1)
        self._aliases[ref] = template
        return template


def _is_object(schema: dict[str, Any]) -> bool:
    return schema.get("type") == "object" or "properties" in schema


def _json_schema(body: dict[str, Any]) -> dict[str, Any] | None:
    content = body.get("content")
    if not isinstance(content, dict) or not content:
        return None
    media = content.get("application/json") or next(iter(content.values()))
    schema = media.get("schema") if isinstance(media, dict) else None
    return schema if isinstance(schema, dict) else None


def _component_name(ref: str) -> str:
    return str(ref).rsplit("/", 1)[-1]


def _resolve_pointer(document: dict[str, Any], ref: str) -> Any:
    if not ref.startswith("#/"):
        raise DefinitionFormatError(f"Only local references are supported: '{ref}'")
    node: Any = document
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            raise DefinitionFormatError(f"Unresolved reference '{ref}'")
        node = node[part]
    return node


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)
