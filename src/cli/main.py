"""CLI de diagnóstico (Typer + Rich).

No es la UI del producto: es un colaborador externo mínimo que ejercita el
Core (listado paginado, búsqueda, detalle) contra la API real.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from adapters.catalog_api import DigiApiClient
from adapters.json_exporter import export_detail_json, export_entities_json
from cli import doctor
from cli.ui_components import build_detail_panel, build_entities_table, print_banner
from core.config import AppSettings
from core.domain.models import EntitySummary
from core.domain.states import DetailFailed, DetailLoaded, Failed, ResultSource, Searching
from core.logging import setup_logging
from core.services.catalog import CatalogSession

app = typer.Typer(no_args_is_help=True, help="Browse and search the creature catalog.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _settings(verbose: bool) -> AppSettings:
    settings = AppSettings()
    setup_logging("DEBUG" if verbose else settings.log_level)
    return settings


async def _browse(settings: AppSettings, pages: int) -> tuple[tuple[EntitySummary, ...], str | None]:
    async with DigiApiClient(settings) as client, CatalogSession(client, settings) as session:
        for _ in range(max(1, pages)):
            state = await session.load_next_page()
            if isinstance(state, Failed):
                return session.projection, str(state.error)
            if session.pagination.exhausted:
                break
        return session.projection, None


async def _search(settings: AppSettings, query: str, preload: int) -> tuple[Searching | None, str | None]:
    async with DigiApiClient(settings) as client, CatalogSession(client, settings) as session:
        for _ in range(max(0, preload)):
            state = await session.load_next_page()
            if isinstance(state, Failed) or session.pagination.exhausted:
                break
        result = await session.set_query(query)
        error = str(session.search.last_error) if session.search.last_error else None
        return (result if isinstance(result, Searching) else None), error


@app.command()
def browse(
    pages: int = typer.Option(1, "--pages", "-p", min=1, help="Número de páginas a cargar."),
    json_path: Path | None = typer.Option(None, "--json", help="Exporta la proyección a JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging DEBUG."),
) -> None:
    """Carga N páginas del listado y las muestra."""

    settings = _settings(verbose)
    print_banner(_console)
    entities, error = asyncio.run(_browse(settings, pages))
    _console.print(build_entities_table(entities, title=f"Entities ({len(entities)})"))
    if json_path:
        export_entities_json(entities=entities, output_path=json_path)
        _console.print(f"[green]Saved:[/green] {json_path}")
    if error:
        _console.print(f"[red]Error:[/red] {error}")
        raise typer.Exit(code=1)


@app.command()
def search(
    query: str = typer.Argument(..., help="Texto a buscar por nombre."),
    preload: int = typer.Option(1, "--preload", min=0, help="Páginas a cargar antes de filtrar en local."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging DEBUG."),
) -> None:
    """Filtra en local y, si no hay coincidencias, busca en la API."""

    settings = _settings(verbose)
    state, error = asyncio.run(_search(settings, query, preload))
    if state is None:
        _console.print("[yellow]Empty query.[/yellow]")
        raise typer.Exit(code=1)

    origin = "API" if state.source is ResultSource.REMOTE else "local"
    _console.print(build_entities_table(state.results, title=f"'{state.query}' ({origin}, {len(state.results)})"))
    if error:
        _console.print(f"[dim]Remote search unavailable: {error}[/dim]")


@app.command()
def show(
    entity_id: int = typer.Argument(..., help="Id de la entidad."),
    json_path: Path | None = typer.Option(None, "--json", help="Exporta la ficha a JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging DEBUG."),
) -> None:
    """Muestra la ficha completa de una entidad."""

    settings = _settings(verbose)

    async def _load():
        async with DigiApiClient(settings) as client, CatalogSession(client, settings) as session:
            return await session.open_detail(entity_id).wait()

    state = asyncio.run(_load())
    if isinstance(state, DetailFailed):
        _console.print(f"[red]Error:[/red] {state.error}")
        raise typer.Exit(code=1)
    if isinstance(state, DetailLoaded):
        _console.print(build_detail_panel(state.detail, language=settings.description_language))
        if json_path:
            export_detail_json(detail=state.detail, output_path=json_path)
            _console.print(f"[green]Saved:[/green] {json_path}")


def run() -> None:
    app()
