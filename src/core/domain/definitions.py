"""Registros de entrada (solo lectura).

Por qué separados de `models`:
- Describen la forma de las fuentes (YAML de argumentos, metadata de tool),
  no el grafo que se serializa.
- Los alias reproducen los nombres de campo del formato de origen.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class RawDefinition(BaseModel):
    """Un fragmento de especificación tal como lo entrega el loader."""

    name: str = Field(..., min_length=1, description="Nombre usado para las exclusiones.")
    location: str = Field(..., description="Fichero o URL de origen.")
    content: dict[str, Any] = Field(default_factory=dict)


class ArgumentDefinition(BaseModel):
    """Una opción de línea de comandos exportada como registro."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(..., alias="option", min_length=1)
    shorthand: str | None = Field(default=None, max_length=1)
    value_type: str | None = None
    default_value: str | None = None
    description: str | None = None
    os_type: str | None = None

    @field_validator("shorthand", "default_value", "value_type", "description", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # YAML convierte `false`, `0` o `1h` en tipos nativos.
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    @field_validator("shorthand")
    @classmethod
    def _empty_shorthand(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("os_type")
    @classmethod
    def _known_os(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized = value.strip().lower()
        if normalized not in ("windows", "unix"):
            raise ValueError(f"unsupported os_type '{value}'")
        return normalized


class CommandDefinition(BaseModel):
    """Documento de un comando (estilo docs/reference de la CLI de Docker)."""

    model_config = ConfigDict(extra="ignore")

    command: str = Field(..., min_length=1)
    short: str | None = None
    long: str | None = None
    usage: str | None = None
    cname: list[str] = Field(default_factory=list)
    options: list[ArgumentDefinition] = Field(default_factory=list)
    inherited_options: list[ArgumentDefinition] = Field(default_factory=list)

    @field_validator("cname", "options", "inherited_options", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_group(self) -> bool:
        return bool(self.cname)


class TypeReference(BaseModel):
    """Descriptor de tipo producido al recorrer un esquema anidado."""

    type: str = Field(..., min_length=1)
    separator: str | None = Field(default=None, min_length=1, max_length=1)
    item_format: str | None = None


class ToolMetadata(BaseModel):
    """Metadata estática de un tool.

    Por qué un registro y no subclases:
    - Un único parser parametrizado sirve para todos los tools de una familia.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=128)
    help: str | None = None
    official_url: str | None = Field(default=None, alias="officialUrl")
    license: list[str] = Field(default_factory=list)
    path_executable: str | None = Field(default=None, alias="pathExecutable")
    package_id: str | None = Field(default=None, alias="packageId")
    package_executable: str | None = Field(default=None, alias="packageExecutable")
    environment_executable: str | None = Field(default=None, alias="environmentExecutable")
    custom_executable: bool = Field(default=False, alias="customExecutable")

    @field_validator("license", mode="before")
    @classmethod
    def _license_lines(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return value.splitlines()
        return value
