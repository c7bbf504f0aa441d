"""Sesión de catálogo: orquesta listado, búsqueda, detalle e imágenes.

Es la única superficie que consume la UI. Mantiene una proyección "actual"
(store completo o resultados de búsqueda) y garantiza que paginación y
búsqueda nunca tocan la red a la vez para la misma vista: mientras se busca,
la paginación queda suspendida y la página en vuelo se descarta.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from PIL import Image

from core.config import AppSettings
from core.domain.models import EntitySummary, Page
from core.domain.states import (
    Browsing,
    PaginationState,
    Searching,
    SearchState,
    ViewMode,
)
from core.errors import FetchError
from core.interfaces.transport import CatalogTransport
from core.services.detail import DetailController
from core.services.dispatcher import MainDispatcher
from core.services.image_cache import ImageCache
from core.services.pagination import PaginationController
from core.services.search import SearchController
from core.services.store import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class SessionHooks:
    """Callbacks opcionales para la capa de presentación.

    Se invocan desde el dispatcher, después de aplicar el cambio de estado.
    """

    projection_changed: Callable[[tuple[EntitySummary, ...]], None] | None = None
    pagination_failed: Callable[[FetchError], None] | None = None
    search_failed: Callable[[str, FetchError], None] | None = None


class CatalogSession:
    def __init__(
        self,
        transport: CatalogTransport,
        settings: AppSettings | None = None,
        *,
        dispatcher: MainDispatcher | None = None,
        image_cache: ImageCache | None = None,
        hooks: SessionHooks | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport
        self.hooks = hooks or SessionHooks()
        self.dispatcher = dispatcher or MainDispatcher()
        self.store = EntityStore()

        self.pagination = PaginationController(
            transport,
            self.store,
            self.dispatcher,
            page_size=self._settings.page_size,
            guard=self._is_browsing,
            on_page_loaded=self._on_page_loaded,
            on_failure=self._on_pagination_failed,
        )
        self.search = SearchController(
            transport,
            self.store,
            self.dispatcher,
            min_query_length=self._settings.search_min_length,
            debounce_seconds=self._settings.search_debounce_seconds,
            on_change=self._on_search_changed,
            on_failure=self._on_search_failed,
        )
        self.images = image_cache or ImageCache(
            transport,
            max_entries=self._settings.image_cache_max_entries,
            max_bytes=self._settings.image_cache_max_bytes,
        )

    async def __aenter__(self) -> "CatalogSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.dispatcher.aclose()

    # --- lectura ---------------------------------------------------------------

    @property
    def mode(self) -> ViewMode:
        return ViewMode.BROWSING if isinstance(self.search.state, Browsing) else ViewMode.SEARCHING

    @property
    def projection(self) -> tuple[EntitySummary, ...]:
        state = self.search.state
        if isinstance(state, Searching):
            return state.results
        return self.store.snapshot()

    # --- operaciones -----------------------------------------------------------

    async def load_next_page(self) -> PaginationState:
        """Solo pagina en modo navegación; en búsqueda es un no-op."""

        return await self.pagination.load_next_page()

    async def retry(self) -> PaginationState:
        return await self.pagination.retry()

    async def refresh(self) -> PaginationState:
        """Vacía el store y vuelve a cargar desde la página 0."""

        await self.pagination.reset()
        await self.dispatcher.run(self._emit_projection)
        return await self.pagination.load_next_page()

    async def set_query(self, text: str) -> SearchState:
        return await self.search.update_query(text)

    async def cancel_search(self) -> SearchState:
        return await self.search.cancel()

    async def get_image(self, url: str) -> Image.Image | None:
        return await self.images.get_image(url)

    def open_detail(self, entity_id: int) -> DetailController:
        """Crea el controlador de una vista de detalle y lanza la carga."""

        controller = DetailController(self._transport, self.dispatcher)
        controller.start(entity_id)
        return controller

    # --- callbacks (dispatcher) -----------------------------------------------

    def _is_browsing(self) -> bool:
        return self.mode is ViewMode.BROWSING

    def _emit_projection(self) -> None:
        if self.hooks.projection_changed:
            self.hooks.projection_changed(self.projection)

    def _on_page_loaded(self, page: Page) -> None:
        self._emit_projection()

    def _on_pagination_failed(self, error: FetchError) -> None:
        if self.hooks.pagination_failed:
            self.hooks.pagination_failed(error)

    def _on_search_changed(self, previous: SearchState, current: SearchState) -> None:
        if isinstance(previous, Browsing) and isinstance(current, Searching):
            logger.debug("Entering search mode; suspending pagination")
            self.pagination.invalidate()
        self._emit_projection()

    def _on_search_failed(self, query: str, error: FetchError) -> None:
        if self.hooks.search_failed:
            self.hooks.search_failed(query, error)
