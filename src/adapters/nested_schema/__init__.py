from adapters.nested_schema.parser import NestedSchemaParser

__all__ = [
    "NestedSchemaParser",
]
