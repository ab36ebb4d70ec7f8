"""Parser de listas de argumentos (data-driven).

Idea:
- Cada documento describe un comando (`docker image build`) con sus opciones
  exportadas como registros fijos (option, shorthand, value_type, ...).
- En vez de una clase por comando, un motor genérico convierte cada registro
  en una `Property` de la Task correspondiente.

Merge documentado:
- `inherited_options` se aplican primero y `options` después; una definición
  posterior de la misma opción reemplaza a la heredada en su posición.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from core.domain.definitions import ArgumentDefinition, CommandDefinition, RawDefinition
from core.domain.models import Property, SettingsClass, Task, Tool
from core.domain.naming import settings_class_name, to_pascal_case
from core.domain.value_types import ARGUMENT_LIST_VOCABULARY, TypeVocabulary, is_dictionary
from core.errors import DefinitionFormatError
from core.interfaces.parser import SpecificationParser
from core.services.model_builder import add_property, register_task

logger = logging.getLogger(__name__)

_EMPTY_DEFAULTS = frozenset({"", "[]", "map[]"})


class ArgumentListParser(SpecificationParser):
    """Convierte documentos de comandos en Tasks con una propiedad por opción."""

    def __init__(
        self,
        definitions: Sequence[RawDefinition],
        *,
        vocabulary: TypeVocabulary = ARGUMENT_LIST_VOCABULARY,
    ) -> None:
        # Las definiciones ya vienen cargadas: no hay handle que liberar.
        self._definitions = list(definitions)
        self._vocabulary = vocabulary

    def close(self) -> None:
        self._definitions = []

    def populate(self, tool: Tool) -> None:
        created = 0
        for raw in self._definitions:
            command = self._validate(raw)
            if command.is_group:
                logger.debug("Skipping command group '%s'", command.command)
                continue

            definite_argument = self._definite_argument(tool, command.command)
            if not definite_argument:
                continue

            task = self.build_task(tool, command, definite_argument)
            register_task(tool, task)
            created += 1
        logger.info("Argument list: created %d tasks", created)

    def build_task(self, tool: Tool, command: CommandDefinition, definite_argument: str) -> Task:
        name = to_pascal_case(definite_argument)
        settings = SettingsClass(name=settings_class_name(tool.name, name))
        for definition in [*command.inherited_options, *command.options]:
            add_property(settings, self.build_property(definition), override=True)

        return Task(
            name=name,
            help=_first_text(command.long, command.short),
            definite_argument=definite_argument,
            settings_class=settings,
        )

    def build_property(self, definition: ArgumentDefinition) -> Property:
        value_type = self._vocabulary.resolve(definition.value_type)
        default = (definition.default_value or "").strip()
        return Property(
            name=to_pascal_case(definition.name),
            type=value_type,
            default=None if default in _EMPTY_DEFAULTS else default,
            help=(definition.description or "").strip() or None,
            format=f"--{definition.name}={{value}}",
            shorthand=definition.shorthand,
            platform=definition.os_type,
            item_format="{key}={value}" if is_dictionary(value_type) else None,
        )

    @staticmethod
    def _validate(raw: RawDefinition) -> CommandDefinition:
        try:
            return CommandDefinition.model_validate(raw.content)
        except ValidationError as exc:
            raise DefinitionFormatError(f"Invalid command definition '{raw.name}' ({raw.location}): {exc}") from exc

    @staticmethod
    def _definite_argument(tool: Tool, command: str) -> str:
        words = command.split()
        prefixes = {p.lower() for p in (tool.path_executable, tool.name) if p}
        if words and words[0].lower() in prefixes:
            words = words[1:]
        return " ".join(words)


def _first_text(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None
