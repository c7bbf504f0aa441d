"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en varios comandos.
"""

from __future__ import annotations

from typing import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import EntityDetail, EntitySummary


def print_banner(console: Console) -> None:
    title = Text("DIGI-CATALOG", style="bold cyan")
    subtitle = Text("Listado • Búsqueda • Detalle", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_entities_table(entities: Iterable[EntitySummary], *, title: str = "Entities") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True, justify="right")
    table.add_column("Name", style="white")
    table.add_column("Image", style="magenta")
    for item in entities:
        table.add_row(str(item.id), item.name, item.image_url or "-")
    return table


def build_detail_panel(detail: EntityDetail, *, language: str = "en_us") -> Panel:
    """Panel con la ficha; la descripción se elige por idioma."""

    body = Text()
    body.append(f"#{detail.id} {detail.name}\n", style="bold")
    if detail.levels:
        body.append("Level: ", style="bold")
        body.append(", ".join(lv.level for lv in detail.levels) + "\n")
    if detail.types:
        body.append("Type: ", style="bold")
        body.append(", ".join(t.type for t in detail.types) + "\n")
    if detail.attributes:
        body.append("Attribute: ", style="bold")
        body.append(", ".join(a.attribute for a in detail.attributes) + "\n")
    if detail.release_date:
        body.append(f"Release: {detail.release_date}\n", style="dim")

    description = detail.description_for(language)
    if description:
        body.append("\n" + description.strip() + "\n")

    if detail.skills:
        body.append("\nSkills:\n", style="bold")
        for skill in detail.skills:
            body.append(f"- {skill.skill}")
            if skill.translation:
                body.append(f" ({skill.translation})", style="dim")
            body.append("\n")

    image = detail.primary_image_url
    if image:
        body.append(f"\n{image}", style="magenta")

    return Panel(body, title=Text(detail.name, style="bold yellow"), border_style="yellow")
