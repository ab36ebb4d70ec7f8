"""Exportación JSON del Tool.

Por qué JSON:
- Es el documento que consume el emisor de código (fuera de este repo).
- Un formato estable permite detectar cambios con un simple diff.

Reglas:
- La contención (Tool -> Tasks -> SettingsClass -> Properties) va inline; las
  back-references se emiten como nombres, así que no hay recursión.
- Las colecciones conservan el orden de inserción del builder: nunca se
  reordenan. Misma entrada => mismos bytes.
- Escritura atómica: o documento completo o ninguno.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from core.domain.models import Tool
from core.errors import SerializationError
from core.services.reference_resolver import references_resolved


def dump_tool(tool: Tool) -> str:
    """Serializa el `Tool` a JSON UTF-8 con formato estable."""

    if not references_resolved(tool):
        raise SerializationError(f"Tool '{tool.name}' has unresolved back-references")
    payload = tool.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def save_tool(*, tool: Tool, output_path: Path) -> Path:
    """Escribe el documento en `output_path`, creando la carpeta si falta."""

    text = dump_tool(tool)
    tmp_path = output_path.with_name(output_path.name + ".tmp")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, output_path)
    except OSError as exc:
        if tmp_path.exists():
            tmp_path.unlink()
        raise SerializationError(f"Cannot write '{output_path}': {exc}") from exc
    return output_path
