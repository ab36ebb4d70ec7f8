"""Contrato de los parsers de especificaciones.

Por qué Protocol:
- Define un contrato estructural sin acoplar el builder a un formato concreto.
- Cada familia de entrada (lista de argumentos, descripción de API, esquema
  anidado) es un adaptador intercambiable; añadir una familia es añadir un
  adaptador.
"""

from __future__ import annotations

from types import TracebackType
from typing import Protocol, runtime_checkable

from core.domain.models import Tool


@runtime_checkable
class SpecificationParser(Protocol):
    """Contrato mínimo de un parser.

    Reglas de diseño:
    - `populate` muta el Tool en construcción añadiendo Tasks, DataClasses y
      Enumerations (siempre a través del builder, que valida nombres).
    - El parser es un recurso con alcance: el constructor puede abrir un
      fichero o un cliente HTTP y `close` lo libera. Se usa siempre con `with`.
    """

    def populate(self, tool: Tool) -> None:
        """Añade al `tool` todo lo que describe la fuente."""

        ...

    def close(self) -> None:
        """Libera los recursos abiertos en el constructor."""

        ...

    def __enter__(self) -> "SpecificationParser":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
