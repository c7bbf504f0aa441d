"""Controlador de paginación incremental.

Máquina de estados:

    Idle(page, exhausted=False) -> Loading(page) -> Idle(page + 1, exhausted?)
                                                 -> Failed(page, error)
    Failed(page, error) -> Loading(page)   (solo cuando lo pide el llamante)

Garantías:
- Como mucho un `fetch_list` en vuelo: la comprobación y el paso a `Loading`
  ocurren en un único job del dispatcher.
- El cursor solo avanza con éxito; nunca se salta ni se repite una página.
- Una completion obsoleta (generación distinta o guardia falsa) se descarta
  sin tocar el store.
- Toda petición termina en un job del dispatcher, aunque el llamante se
  cancele o el transporte lance algo fuera de `FetchError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from core.domain.models import Page
from core.domain.states import Failed, Idle, Loading, PaginationState
from core.errors import FetchError, UnexpectedTransportError
from core.interfaces.transport import CatalogTransport
from core.services.dispatcher import MainDispatcher
from core.services.store import EntityStore

logger = logging.getLogger(__name__)


class PaginationController:
    def __init__(
        self,
        transport: CatalogTransport,
        store: EntityStore,
        dispatcher: MainDispatcher,
        *,
        page_size: int = 20,
        guard: Callable[[], bool] | None = None,
        on_page_loaded: Callable[[Page], None] | None = None,
        on_failure: Callable[[FetchError], None] | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._dispatcher = dispatcher
        self._page_size = page_size
        self._guard = guard
        self._on_page_loaded = on_page_loaded
        self._on_failure = on_failure

        self._state: PaginationState = Idle()
        self._generation = 0
        self._restart_page: int | None = None
        self._resume = Idle()
        self._in_flight = 0
        self._cycles: set[asyncio.Task[PaginationState]] = set()

    @property
    def state(self) -> PaginationState:
        return self._state

    @property
    def page(self) -> int:
        return self._state.page

    @property
    def exhausted(self) -> bool:
        return isinstance(self._state, Idle) and self._state.exhausted

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def load_next_page(self) -> PaginationState:
        """Pide la siguiente página; no-op si ya hay una en vuelo o no quedan más."""

        task = asyncio.get_running_loop().create_task(self._load_cycle())
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)
        # shield: si el llamante se cancela, el ciclo termina igual y saca el estado de Loading.
        return await asyncio.shield(task)

    async def retry(self) -> PaginationState:
        """Reintento explícito tras `Failed`; en cualquier otro estado no hace nada."""

        if not isinstance(self._state, Failed):
            return self._state
        return await self.load_next_page()

    async def reset(self) -> None:
        """Vacía el store y vuelve a la página 0.

        Si hay una página en vuelo, espera a que su completion se descarte, de
        modo que al volver ya se puede pedir la página 0.
        """

        await self._dispatcher.run(self._reset)
        pending = set(self._cycles)
        if pending:
            await asyncio.wait(pending)

    def invalidate(self) -> None:
        """Marca como obsoleta la petición en vuelo (llamar desde el dispatcher)."""

        self._generation += 1

    async def _load_cycle(self) -> PaginationState:
        ticket = await self._dispatcher.run(self._begin)
        if ticket is None:
            return self._state

        page, generation = ticket
        outcome: Page | FetchError
        self._in_flight += 1
        try:
            outcome = await self._transport.fetch_list(page, self._page_size)
        except FetchError as exc:
            outcome = exc
        except asyncio.CancelledError:
            if not self._dispatcher.closed:
                self._dispatcher.post(self._abandon)
            raise
        except Exception as exc:
            logger.exception("Transport failed outside the error taxonomy on page %s", page)
            outcome = UnexpectedTransportError(exc)
        finally:
            self._in_flight -= 1
        return await self._dispatcher.run(self._complete, generation, page, outcome)

    # --- jobs del dispatcher -------------------------------------------------

    def _begin(self) -> tuple[int, int] | None:
        state = self._state
        if isinstance(state, Loading):
            logger.debug("Skipping load: page %s already in flight", state.page)
            return None
        if isinstance(state, Idle) and state.exhausted:
            logger.debug("Skipping load: list exhausted at page %s", state.page)
            return None
        if self._guard is not None and not self._guard():
            logger.debug("Skipping load: pagination suspended")
            return None

        self._resume = state if isinstance(state, Idle) else Idle(state.page)
        self._state = Loading(state.page)
        logger.debug("Loading page %s", state.page)
        return state.page, self._generation

    def _settle_stale(self) -> PaginationState:
        restart = self._restart_page
        self._restart_page = None
        self._state = self._resume if restart is None else Idle(restart)
        return self._state

    def _abandon(self) -> None:
        if isinstance(self._state, Loading):
            logger.debug("Load of page %s cancelled", self._state.page)
            self._settle_stale()

    def _complete(self, generation: int, page: int, outcome: Page | FetchError) -> PaginationState:
        stale = generation != self._generation or (self._guard is not None and not self._guard())
        if stale:
            logger.warning("Discarding stale completion for page %s", page)
            return self._settle_stale()

        if isinstance(outcome, FetchError):
            self._state = Failed(page, outcome)
            logger.warning("Failed to load page %s: %s", page, outcome)
            if self._on_failure:
                self._on_failure(outcome)
            return self._state

        added = self._store.extend(outcome.items)
        self._state = Idle(page + 1, outcome.is_last)
        logger.debug(
            "Page %s loaded: %s new items, store=%s, exhausted=%s",
            page,
            len(added),
            len(self._store),
            outcome.is_last,
        )
        if self._on_page_loaded:
            self._on_page_loaded(outcome)
        return self._state

    def _reset(self) -> None:
        self.invalidate()
        self._store.clear()
        if isinstance(self._state, Loading):
            # La petición en vuelo se descartará; al hacerlo se vuelve a la página 0.
            self._restart_page = 0
        else:
            self._state = Idle()
