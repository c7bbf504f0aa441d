"""Contexto propietario del estado compartido.

Equivale al "hilo de UI" del cliente móvil: una cola de trabajos con un único
consumidor. Toda escritura sobre el store y los estados de los controladores
se envía aquí como un job, así que dos completions nunca se intercalan.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_Job = tuple[Callable[..., Any], tuple[Any, ...], "asyncio.Future[Any]"]


class MainDispatcher:
    """Cola serie de jobs síncronos ejecutados por una sola task."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[_Job | None] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_started(self) -> None:
        if self._closed:
            raise RuntimeError("dispatcher is closed")
        if not self.running:
            self._consumer = asyncio.get_running_loop().create_task(self._consume())

    def post(self, fn: Callable[..., T], *args: Any) -> "asyncio.Future[T]":
        """Encola `fn(*args)` y devuelve un future con su resultado."""

        self._ensure_started()
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((fn, args, future))
        return future

    async def run(self, fn: Callable[..., T], *args: Any) -> T:
        """Ejecuta `fn(*args)` en el contexto propietario y espera el resultado."""

        return await self.post(fn, *args)

    async def drain(self) -> None:
        """Espera a que se procesen todos los jobs encolados hasta ahora."""

        await self.run(lambda: None)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.running:
            self._queue.put_nowait(None)
            assert self._consumer is not None
            await self._consumer

    async def _consume(self) -> None:
        while True:
            job = await self._queue.get()
            if job is None:
                break
            fn, args, future = job
            if future.cancelled():
                continue
            try:
                result = fn(*args)
            except Exception as exc:
                logger.exception("Job %r failed on main dispatcher", fn)
                future.set_exception(exc)
            else:
                future.set_result(result)
        # Lo que quede tras el cierre no se ejecuta.
        while not self._queue.empty():
            pending = self._queue.get_nowait()
            if pending is not None and not pending[2].done():
                pending[2].cancel()
