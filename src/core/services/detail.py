"""Carga del detalle de una entidad, cancelable.

Cada vista de detalle tiene su `DetailController`. Al cerrarla se cancela el
token de la petición en curso: si la respuesta llega después, se descarta sin
cambiar estado ni avisar a nadie.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from core.domain.models import EntityDetail
from core.domain.states import DetailFailed, DetailIdle, DetailLoaded, DetailLoading, DetailState
from core.errors import FetchError, UnexpectedTransportError
from core.interfaces.transport import CatalogTransport
from core.services.dispatcher import MainDispatcher

logger = logging.getLogger(__name__)


class CancellationToken:
    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class DetailController:
    def __init__(
        self,
        transport: CatalogTransport,
        dispatcher: MainDispatcher,
        *,
        on_change: Callable[[DetailState], None] | None = None,
    ) -> None:
        self._transport = transport
        self._dispatcher = dispatcher
        self._on_change = on_change
        self._state: DetailState = DetailIdle()
        self._token: CancellationToken | None = None
        self._task: asyncio.Task[DetailState] | None = None
        self._cycles: set[asyncio.Task[DetailState]] = set()

    @property
    def state(self) -> DetailState:
        return self._state

    async def load(self, entity_id: int) -> DetailState:
        """Pide el detalle; abrir otro id cancela la petición anterior."""

        cycle = asyncio.get_running_loop().create_task(self._load_cycle(entity_id))
        self._cycles.add(cycle)
        cycle.add_done_callback(self._cycles.discard)
        return await asyncio.shield(cycle)

    async def _load_cycle(self, entity_id: int) -> DetailState:
        token = await self._dispatcher.run(self._begin, entity_id)
        outcome: EntityDetail | FetchError
        try:
            outcome = await self._transport.fetch_detail(entity_id)
        except FetchError as exc:
            outcome = exc
        except asyncio.CancelledError:
            if not self._dispatcher.closed:
                self._dispatcher.post(self._abandon, token)
            raise
        except Exception as exc:
            logger.exception("Transport failed outside the error taxonomy for detail %s", entity_id)
            outcome = UnexpectedTransportError(exc)
        return await self._dispatcher.run(self._complete, token, entity_id, outcome)

    def start(self, entity_id: int) -> "asyncio.Task[DetailState]":
        self._task = asyncio.get_running_loop().create_task(self.load(entity_id))
        return self._task

    async def wait(self) -> DetailState:
        if self._task is not None:
            await self._task
        return self._state

    async def close(self) -> None:
        """La vista se destruye: cualquier respuesta pendiente se ignora."""

        if self._token is not None:
            self._token.cancel()
        await self._dispatcher.run(self._set_state, DetailIdle(), False)

    async def dismiss(self) -> None:
        """Descarta un error mostrado y vuelve al estado inicial."""

        if isinstance(self._state, DetailFailed):
            await self._dispatcher.run(self._set_state, DetailIdle(), True)

    # --- jobs del dispatcher -------------------------------------------------

    def _set_state(self, state: DetailState, notify: bool = True) -> None:
        self._state = state
        if notify and self._on_change:
            self._on_change(state)

    def _begin(self, entity_id: int) -> CancellationToken:
        if self._token is not None:
            self._token.cancel()
        self._token = CancellationToken()
        self._set_state(DetailLoading(entity_id))
        return self._token

    def _abandon(self, token: CancellationToken) -> None:
        if not token.cancelled and isinstance(self._state, DetailLoading):
            self._set_state(DetailIdle())

    def _complete(
        self,
        token: CancellationToken,
        entity_id: int,
        outcome: EntityDetail | FetchError,
    ) -> DetailState:
        if token.cancelled:
            logger.debug("Discarding detail %s: view closed or superseded", entity_id)
            return self._state

        if isinstance(outcome, FetchError):
            logger.warning("Failed to load detail %s: %s", entity_id, outcome)
            self._set_state(DetailFailed(entity_id, outcome))
        else:
            self._set_state(DetailLoaded(outcome))
        return self._state
