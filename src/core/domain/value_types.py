"""Semantic value types and input vocabularies.

Parsers never share a global mapping: each one receives a `TypeVocabulary`
in its constructor. The defaults below cover the argument-list value types
and JSON-schema/OpenAPI `type[:format]` keys.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class BuiltinType(str, Enum):
    """Built-in semantic types understood by the downstream emitter."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DURATION = "duration"

    @staticmethod
    def list_of(item: str) -> str:
        return f"list[{item}]"

    @staticmethod
    def dict_of(item: str) -> str:
        return f"dict[string,{item}]"


def is_dictionary(type_name: str) -> bool:
    return type_name.startswith("dict[")


class TypeVocabulary(BaseModel):
    """Maps input type strings to semantic types; unmatched input is a string."""

    mapping: dict[str, str] = Field(default_factory=dict)
    fallback: str = BuiltinType.STRING.value

    def resolve(self, value: str | None) -> str:
        if not value:
            return self.fallback
        return self.mapping.get(value.strip(), self.fallback)

    def knows(self, value: str | None) -> bool:
        return bool(value) and value.strip() in self.mapping


_LIST_OF_STRING = BuiltinType.list_of(BuiltinType.STRING.value)
_DICT_OF_STRING = BuiltinType.dict_of(BuiltinType.STRING.value)

ARGUMENT_LIST_VOCABULARY = TypeVocabulary(
    mapping={
        "string": BuiltinType.STRING.value,
        "bool": BuiltinType.BOOL.value,
        "int": BuiltinType.INT.value,
        "uint": BuiltinType.INT.value,
        "uint16": BuiltinType.INT.value,
        "int64": BuiltinType.LONG.value,
        "uint64": BuiltinType.LONG.value,
        "float": BuiltinType.FLOAT.value,
        "float64": BuiltinType.FLOAT.value,
        "decimal": BuiltinType.FLOAT.value,
        "duration": BuiltinType.DURATION.value,
        "list": _LIST_OF_STRING,
        "stringSlice": _LIST_OF_STRING,
        "stringArray": _LIST_OF_STRING,
        "strings": _LIST_OF_STRING,
        "filter": _LIST_OF_STRING,
        "mount": _LIST_OF_STRING,
        "port": _LIST_OF_STRING,
        "ulimit": _LIST_OF_STRING,
        "map": _DICT_OF_STRING,
        "stringToString": _DICT_OF_STRING,
    }
)

SCHEMA_VOCABULARY = TypeVocabulary(
    mapping={
        "string": BuiltinType.STRING.value,
        "string:date-time": BuiltinType.STRING.value,
        "string:duration": BuiltinType.DURATION.value,
        "boolean": BuiltinType.BOOL.value,
        "integer": BuiltinType.INT.value,
        "integer:int32": BuiltinType.INT.value,
        "integer:int64": BuiltinType.LONG.value,
        "number": BuiltinType.FLOAT.value,
        "number:float": BuiltinType.FLOAT.value,
        "number:double": BuiltinType.FLOAT.value,
    }
)


def schema_type_key(schema: dict) -> str | None:
    """`type[:format]` key for a JSON-schema node, or None if untyped."""

    type_name = schema.get("type")
    if not isinstance(type_name, str):
        return None
    fmt = schema.get("format")
    if isinstance(fmt, str) and fmt:
        return f"{type_name}:{fmt}"
    return type_name


def resolve_schema_type(vocabulary: TypeVocabulary, schema: dict) -> str:
    """Resolve a primitive schema node, falling back to the bare `type`."""

    key = schema_type_key(schema)
    if vocabulary.knows(key):
        return vocabulary.resolve(key)
    return vocabulary.resolve(schema.get("type") if isinstance(schema.get("type"), str) else None)
