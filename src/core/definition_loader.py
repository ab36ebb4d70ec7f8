"""Cargador de definiciones.

Este módulo vive en `core/` porque:
- centraliza el *qué* leemos (carpeta, fichero o URL) sin acoplarse a la CLI
- evita duplicar lógica de paths/descarga en cada parser.

Contrato:
- Solo I/O: no modifica nada fuera de lo que devuelve.
- Falla con `SourceUnavailable` si la fuente no se puede leer y con
  `EmptyDefinitionSet` si tras las exclusiones no queda nada.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import urlparse

import httpx
import yaml
from pydantic import ValidationError

from adapters.http_client import build_client, is_remote
from core.domain.definitions import RawDefinition
from core.errors import DefinitionFormatError, EmptyDefinitionSet, SourceUnavailable

logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = (".yaml", ".yml", ".json")


def format_location(location: str | Path, reference: str | None) -> str:
    text = str(location)
    if reference and "{reference}" in text:
        return text.replace("{reference}", reference)
    return text


def parse_document(text: str, *, location: str) -> Any:
    """Parsea JSON o YAML según la extensión (YAML por defecto)."""

    suffix = PurePosixPath(urlparse(location).path).suffix.lower()
    try:
        if suffix == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise DefinitionFormatError(f"Cannot parse '{location}': {exc}") from exc


def _read_remote(url: str, client: httpx.Client | None) -> str:
    owned = client is None
    client = client or build_client()
    try:
        resp = client.get(url)
        resp.raise_for_status()
        return resp.text
    except httpx.HTTPError as exc:
        raise SourceUnavailable(url, str(exc)) from exc
    finally:
        if owned:
            client.close()


def _read_local(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DefinitionFormatError(f"'{path}' is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise SourceUnavailable(str(path), str(exc)) from exc


def fetch_document(
    location: str | Path,
    *,
    reference: str | None = None,
    client: httpx.Client | None = None,
) -> Any:
    """Lee y parsea un único documento (local o remoto)."""

    resolved = format_location(location, reference)
    if is_remote(resolved):
        text = _read_remote(resolved, client)
    else:
        path = Path(resolved)
        if not path.is_file():
            raise SourceUnavailable(resolved, "file not found")
        text = _read_local(path)
    return parse_document(text, location=resolved)


def _definition_name(item: Any, fallback: str) -> str:
    if not isinstance(item, dict):
        return fallback
    name = item.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    command = item.get("command")
    if isinstance(command, str) and command.strip():
        return "_".join(command.split())
    return fallback


def _split_document(data: Any, *, stem: str, location: str) -> list[RawDefinition]:
    if data is None:
        return []
    try:
        if isinstance(data, list):
            return [
                RawDefinition(
                    name=_definition_name(item, f"{stem}_{index}"),
                    location=location,
                    content=item,
                )
                for index, item in enumerate(data)
            ]
        return [RawDefinition(name=stem, location=location, content=data)]
    except ValidationError as exc:
        raise DefinitionFormatError(f"Unexpected document shape in '{location}': {exc}") from exc


def _folder_files(folder: Path) -> list[Path]:
    try:
        entries = sorted(folder.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise SourceUnavailable(str(folder), str(exc)) from exc
    return [p for p in entries if p.is_file() and p.suffix.lower() in DEFINITION_SUFFIXES]


def load_definitions(
    location: str | Path,
    *,
    reference: str | None = None,
    excluded_names: Iterable[str] = (),
    client: httpx.Client | None = None,
) -> list[RawDefinition]:
    """Carga las definiciones de una carpeta, fichero o URL.

    Reglas:
    - `{reference}` en la ubicación se sustituye por la referencia/versión.
    - En carpetas, si existe `<carpeta>/<reference>` se usa esa subcarpeta.
    - Los ficheros se leen en orden de nombre (determinista).
    - La exclusión es por nombre exacto (sensible a mayúsculas).
    """

    resolved = format_location(location, reference)
    definitions: list[RawDefinition] = []

    if is_remote(resolved):
        stem = PurePosixPath(urlparse(resolved).path).stem or "definition"
        data = parse_document(_read_remote(resolved, client), location=resolved)
        definitions.extend(_split_document(data, stem=stem, location=resolved))
    else:
        path = Path(resolved)
        if path.is_dir():
            if reference and (path / reference).is_dir():
                path = path / reference
            for file in _folder_files(path):
                data = parse_document(_read_local(file), location=str(file))
                definitions.extend(_split_document(data, stem=file.stem, location=str(file)))
        elif path.is_file():
            data = parse_document(_read_local(path), location=str(path))
            definitions.extend(_split_document(data, stem=path.stem, location=str(path)))
        else:
            raise SourceUnavailable(resolved, "no such file or directory")

    excluded = set(excluded_names)
    kept = [d for d in definitions if d.name not in excluded]
    logger.info(
        "Loaded %d definitions from %s (%d excluded)",
        len(kept),
        resolved,
        len(definitions) - len(kept),
    )
    if not kept:
        raise EmptyDefinitionSet(resolved)
    return kept
