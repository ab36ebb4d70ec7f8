"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Los umbrales del merge y los parámetros HTTP se leen de forma consistente
  desde servicios y adaptadores.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.definitions import ToolMetadata
from core.errors import DefinitionFormatError, SourceUnavailable
from core.services.model_builder import MergePolicy


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "toolspec"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "toolspec"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "toolspec"
    return Path.home() / ".config" / "toolspec"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLSPEC_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    output_folder: Path = Field(
        default=Path("specifications"),
        description="Carpeta donde se escribe <Tool>.json.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request al descargar especificaciones (segundos).",
    )
    user_agent: str = Field(
        default="toolspec/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para descargas remotas.",
    )

    common_property_min_tasks: int = Field(
        default=2,
        ge=2,
        description="Número mínimo de tasks que deben compartir una propiedad para extraerla.",
    )
    common_set_min_size: int = Field(
        default=3,
        ge=2,
        description="Tamaño mínimo de un bloque consecutivo para extraerlo como set común.",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING...).",
    )

    def merge_policy(self) -> MergePolicy:
        return MergePolicy(
            min_tasks=self.common_property_min_tasks,
            min_set_size=self.common_set_min_size,
        )


def load_tool_metadata(path: Path) -> ToolMetadata:
    """Carga el registro `ToolMetadata` desde un fichero YAML/JSON.

    YAML es superconjunto de JSON, así que un único `safe_load` cubre ambos.
    """

    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DefinitionFormatError(f"Tool metadata '{path}' is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise SourceUnavailable(str(path), str(exc)) from exc

    try:
        data: Any = yaml.safe_load(raw) or {}
        return ToolMetadata.model_validate(data)
    except (yaml.YAMLError, ValidationError) as exc:
        raise DefinitionFormatError(f"Invalid tool metadata in '{path}': {exc}") from exc
