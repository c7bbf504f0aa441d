"""Controlador de búsqueda: filtro local con fallback remoto.

Algoritmo por cada cambio de consulta:
1. Consulta vacía -> `Browsing`.
2. Coincidencias locales (subcadena, sin distinguir mayúsculas, en orden del
   store).
3. Si hay coincidencias o la consulta es más corta que `min_query_length`, el
   resultado es local y no hay red.
4. Si no, búsqueda remota. Sus resultados solo se muestran; no entran en el
   store. Un fallo deja el resultado local (vacío) y no es un error duro.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from core.domain.models import Page
from core.domain.states import Browsing, ResultSource, Searching, SearchState
from core.errors import FetchError, UnexpectedTransportError
from core.interfaces.transport import CatalogTransport
from core.services.dispatcher import MainDispatcher
from core.services.store import EntityStore

logger = logging.getLogger(__name__)


class SearchController:
    def __init__(
        self,
        transport: CatalogTransport,
        store: EntityStore,
        dispatcher: MainDispatcher,
        *,
        min_query_length: int = 2,
        debounce_seconds: float = 0.0,
        on_change: Callable[[SearchState, SearchState], None] | None = None,
        on_failure: Callable[[str, FetchError], None] | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._dispatcher = dispatcher
        self._min_query_length = min_query_length
        self._debounce_seconds = debounce_seconds
        self._on_change = on_change
        self._on_failure = on_failure

        self._state: SearchState = Browsing()
        self._generation = 0
        self.last_error: FetchError | None = None
        self._cycles: set[asyncio.Task[SearchState]] = set()

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def is_searching(self) -> bool:
        return isinstance(self._state, Searching)

    async def update_query(self, text: str) -> SearchState:
        task = asyncio.get_running_loop().create_task(self._query_cycle(text))
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        # shield: cancelar al llamante no deja el estado con `pending=True`.
        return await asyncio.shield(task)

    async def cancel(self) -> SearchState:
        await self._dispatcher.run(self._apply_query, "")
        return self._state

    async def _query_cycle(self, text: str) -> SearchState:
        ticket = await self._dispatcher.run(self._apply_query, text)
        if ticket is None:
            return self._state

        query, generation = ticket
        if self._debounce_seconds > 0:
            await asyncio.sleep(self._debounce_seconds)
            if not await self._dispatcher.run(self._is_current, generation):
                logger.debug("Debounced search %r superseded", query)
                return self._state

        outcome: Page | FetchError
        try:
            outcome = await self._transport.search(query)
        except FetchError as exc:
            outcome = exc
        except asyncio.CancelledError:
            if not self._dispatcher.closed:
                self._dispatcher.post(self._abandon, generation, query)
            raise
        except Exception as exc:
            logger.exception("Transport failed outside the error taxonomy searching %r", query)
            outcome = UnexpectedTransportError(exc)
        return await self._dispatcher.run(self._complete_remote, generation, query, outcome)

    # --- jobs del dispatcher -------------------------------------------------

    def _set_state(self, state: SearchState) -> None:
        previous, self._state = self._state, state
        if self._on_change:
            self._on_change(previous, state)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _apply_query(self, text: str) -> tuple[str, int] | None:
        self._generation += 1
        query = text.strip()
        if not query:
            self.last_error = None
            self._set_state(Browsing())
            return None

        matches = self._store.filter_by_name(query)
        if matches or len(query) < self._min_query_length:
            self._set_state(Searching(query, matches, ResultSource.LOCAL))
            return None

        logger.debug("No local match for %r, falling back to remote search", query)
        self._set_state(Searching(query, (), ResultSource.LOCAL, pending=True))
        return query, self._generation

    def _abandon(self, generation: int, query: str) -> None:
        if generation == self._generation:
            logger.debug("Remote search for %r cancelled", query)
            self._set_state(Searching(query, (), ResultSource.LOCAL))

    def _complete_remote(self, generation: int, query: str, outcome: Page | FetchError) -> SearchState:
        if generation != self._generation:
            logger.debug("Discarding stale search results for %r", query)
            return self._state

        if isinstance(outcome, FetchError):
            self.last_error = outcome
            logger.warning("Remote search for %r failed: %s", query, outcome)
            self._set_state(Searching(query, (), ResultSource.LOCAL))
            if self._on_failure:
                self._on_failure(query, outcome)
            return self._state

        self.last_error = None
        self._set_state(Searching(query, outcome.items, ResultSource.REMOTE))
        return self._state
