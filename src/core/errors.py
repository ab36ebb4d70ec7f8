"""Errores del pipeline de especificaciones.

Por qué una jerarquía propia:
- La CLI captura `ToolSpecError` en un único punto y corta la ejecución.
- Ninguno de estos errores es recuperable: no hay modo de éxito parcial.
"""

from __future__ import annotations


class ToolSpecError(Exception):
    """Base de todos los errores esperados del pipeline."""


class SourceUnavailable(ToolSpecError):
    """La fuente de definiciones no se puede leer (ruta, permisos, HTTP)."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"Specification source '{location}' is unavailable: {reason}")
        self.location = location
        self.reason = reason


class EmptyDefinitionSet(ToolSpecError):
    """No queda ninguna definición tras aplicar las exclusiones."""

    def __init__(self, location: str) -> None:
        super().__init__(f"No definitions left to process from '{location}'")
        self.location = location


class DefinitionFormatError(ToolSpecError):
    """Un documento no se puede parsear o no cumple el formato esperado."""


class DuplicateDefinitionError(ToolSpecError):
    """Dos definiciones distintas producen el mismo identificador."""

    def __init__(self, kind: str, name: str, container: str, *, scope: str = "tool") -> None:
        super().__init__(f"{kind} '{name}' is already defined in {scope} '{container}'")
        self.kind = kind
        self.name = name
        self.container = container
        self.scope = scope


class RecursiveSchemaError(ToolSpecError):
    """Un esquema anidado se referencia a sí mismo de forma cíclica."""

    def __init__(self, path: list[str]) -> None:
        super().__init__("Recursive schema reference: " + " -> ".join(path))
        self.path = list(path)


class SerializationError(ToolSpecError):
    """Fallo al escribir el documento; la causa original queda encadenada."""
