"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- La serialización del grafo es un `model_dump` con alias camelCase; el
  emisor de código que consume el documento espera esa forma.

Nota:
- La propiedad es estrictamente en árbol (Tool -> Task -> SettingsClass).
- Las back-references (`tool`, `task`) son nombres, no objetos: las asigna
  el resolver y nunca generan ciclos al serializar.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

Platform = Literal["windows", "unix"]


class SpecModel(BaseModel):
    """Base común: snake_case en Python, camelCase en el documento."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=False,
    )


class Property(SpecModel):
    """Un argumento de una tarea o un campo de una data class."""

    name: str = Field(
        ...,
        min_length=1,
        description="Nombre PascalCase de la propiedad.",
    )
    type: str = Field(
        default="string",
        min_length=1,
        description="Tipo semántico (builtin, list[...], dict[...] o nombre de clase/enum).",
    )
    default: str | None = Field(
        default=None,
        description="Valor por defecto declarado por la fuente.",
    )
    help: str | None = Field(
        default=None,
        description="Descripción legible.",
    )
    format: str | None = Field(
        default=None,
        description="Plantilla de línea de comandos, p.ej. '--tag={value}'.",
    )
    shorthand: str | None = Field(
        default=None,
        min_length=1,
        max_length=1,
        description="Alias de un solo carácter.",
    )
    platform: Platform | None = Field(
        default=None,
        description="Restricción de sistema operativo (windows/unix).",
    )
    separator: str | None = Field(
        default=None,
        min_length=1,
        max_length=1,
        description="Delimitador para valores repetidos.",
    )
    item_format: str | None = Field(
        default=None,
        description="Formato de cada elemento en listas/diccionarios.",
    )

    def merge_key(self) -> tuple[str, str, str | None]:
        """Identidad usada por el merge: mismo nombre, tipo y descripción."""

        return (self.name, self.type, self.help)


class DataClass(SpecModel):
    """Tipo estructurado reutilizable, referenciado por nombre desde propiedades."""

    name: str = Field(..., min_length=1)
    help: str | None = None
    properties: list[Property] = Field(default_factory=list)
    tool: str | None = Field(
        default=None,
        description="Back-reference: nombre del Tool (la asigna el resolver).",
    )


class SettingsClass(SpecModel):
    """Bolsa de propiedades que respalda la invocación de una Task."""

    name: str = Field(..., min_length=1)
    properties: list[Property] = Field(default_factory=list)
    task: str | None = Field(
        default=None,
        description="Back-reference: nombre de la Task propietaria.",
    )
    tool: str | None = Field(
        default=None,
        description="Back-reference: nombre del Tool.",
    )


class Task(SpecModel):
    """Una operación/subcomando expuesto por el Tool."""

    name: str = Field(..., min_length=1)
    help: str | None = None
    definite_argument: str | None = Field(
        default=None,
        description="Palabras del subcomando previas a las opciones (p.ej. 'image build').",
    )
    settings_class: SettingsClass
    common_properties: list[str] = Field(
        default_factory=list,
        description="Nombres de CommonTaskProperty que usa la tarea.",
    )
    common_property_sets: list[str] = Field(
        default_factory=list,
        description="Nombres de CommonTaskPropertySet que usa la tarea.",
    )
    tool: str | None = Field(
        default=None,
        description="Back-reference: nombre del Tool.",
    )


class Enumeration(SpecModel):
    """Conjunto cerrado de valores."""

    name: str = Field(..., min_length=1)
    values: list[str] = Field(default_factory=list)


class CommonTaskProperty(Property):
    """Propiedad compartida tal cual por varias tasks."""


class CommonTaskPropertySet(SpecModel):
    """Grupo ordenado de propiedades compartido por varias tasks."""

    name: str = Field(..., min_length=1)
    properties: list[Property] = Field(default_factory=list)


class Tool(SpecModel):
    """Agregado raíz: un programa de línea de comandos envuelto.

    Por qué un agregado:
    - Centraliza todo lo generado en una ejecución para facilitar el merge,
      la resolución de referencias y la exportación.
    """

    name: str = Field(..., min_length=1, max_length=128)
    help: str | None = None
    official_url: str | None = None
    license: list[str] = Field(default_factory=list)

    path_executable: str | None = None
    package_id: str | None = None
    package_executable: str | None = None
    environment_executable: str | None = None
    custom_executable: bool = False

    references: list[str] = Field(
        default_factory=list,
        description="Ubicaciones de las especificaciones de origen.",
    )

    tasks: list[Task] = Field(default_factory=list)
    common_task_properties: list[CommonTaskProperty] = Field(default_factory=list)
    common_task_property_sets: list[CommonTaskPropertySet] = Field(default_factory=list)
    data_classes: list[DataClass] = Field(default_factory=list)
    enumerations: list[Enumeration] = Field(default_factory=list)

    def get_task(self, name: str) -> Task | None:
        for task in self.tasks:
            if task.name == name:
                return task
        return None

    def get_type(self, name: str) -> DataClass | Enumeration | None:
        """Busca una DataClass o Enumeration (comparten espacio de nombres)."""

        for data_class in self.data_classes:
            if data_class.name == name:
                return data_class
        for enumeration in self.enumerations:
            if enumeration.name == name:
                return enumeration
        return None
