"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- El resumen post-ejecución se puede reutilizar en cualquier comando.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.services.generation_pipeline import GenerationResult


def print_banner(console: Console, tool_name: str) -> None:
    """Imprime el banner de inicio de una generación."""

    title = Text("toolspec", style="bold cyan")
    subtitle = Text(f"Generating {tool_name} specifications", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_summary_table(result: GenerationResult) -> Table:
    """Tabla con los contadores post-ejecución."""

    summary = result.summary
    table = Table(title=f"{result.tool.name} specification")
    table.add_column("Created", style="cyan", no_wrap=True)
    table.add_column("Count", style="white", justify="right")
    table.add_row("Tasks", str(summary.tasks))
    table.add_row("Data Classes", str(summary.data_classes))
    table.add_row("Enumerations", str(summary.enumerations))
    table.add_row("Common Task Properties", str(summary.common_task_properties))
    table.add_row("Common Task Property Sets", str(summary.common_task_property_sets))
    table.caption = str(result.output_path)
    return table
