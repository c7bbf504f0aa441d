"""Caché de imágenes en memoria, indexada por URL.

- Hit: se devuelve sin I/O y se refresca la posición LRU.
- Miss: una única descarga por URL aunque haya varios llamantes a la vez; todos
  esperan el mismo future.
- Fallo (red o decodificación): se resuelve a `None` y no se cachea, así que un
  reintento posterior vuelve a descargar.

La tabla LRU, la tabla de descargas pendientes y los contadores comparten un
lock propio; no depende del `MainDispatcher`. `peek`, `clear` y `len` se pueden
llamar desde cualquier hilo; `get_image` necesita un event loop en marcha porque
los futures pendientes pertenecen a él.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from io import BytesIO
from typing import Callable, Protocol

from PIL import Image, UnidentifiedImageError

from core.errors import FetchError, ImageDecodeError

logger = logging.getLogger(__name__)


class BytesFetcher(Protocol):
    async def fetch_bytes(self, url: str) -> bytes:
        ...


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    fetches: int = 0
    failures: int = 0
    evictions: int = 0


@dataclass
class _Entry:
    image: Image.Image
    size: int


def decode_image(url: str, data: bytes) -> Image.Image:
    """Decodifica con Pillow; cualquier fallo se traduce a `ImageDecodeError`."""

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageDecodeError(url, str(exc)) from exc
    return image


class ImageCache:
    def __init__(
        self,
        fetcher: BytesFetcher,
        *,
        max_entries: int = 200,
        max_bytes: int = 32 * 1024 * 1024,
        decoder: Callable[[str, bytes], Image.Image] = decode_image,
    ) -> None:
        self._fetcher = fetcher
        self._max_entries = max(1, max_entries)
        self._max_bytes = max(1, max_bytes)
        self._decoder = decoder

        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._current_bytes = 0
        self._lock = threading.Lock()
        self._pending: dict[str, asyncio.Future[Image.Image | None]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self.stats = CacheStats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._entries

    @property
    def current_bytes(self) -> int:
        with self._lock:
            return self._current_bytes

    def peek(self, url: str) -> Image.Image | None:
        """Consulta síncrona: la imagen si está en memoria, sin tocar la red."""

        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            self._entries.move_to_end(url)
            self.stats.hits += 1
            return entry.image

    async def get_image(self, url: str) -> Image.Image | None:
        if not url:
            return None

        cached = self.peek(url)
        if cached is not None:
            return cached

        with self._lock:
            pending = self._pending.get(url)
            if pending is None:
                self.stats.misses += 1
                loop = asyncio.get_running_loop()
                pending = loop.create_future()
                self._pending[url] = pending
                task = loop.create_task(self._load(url, pending))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
            else:
                self.stats.coalesced += 1

        # shield: cancelar a un llamante no cancela la descarga compartida.
        return await asyncio.shield(pending)

    def clear(self) -> None:
        """Vacía la caché (p.ej. ante presión de memoria)."""

        with self._lock:
            self._entries.clear()
            self._current_bytes = 0

    async def _load(self, url: str, future: asyncio.Future[Image.Image | None]) -> None:
        result: Image.Image | None = None
        with self._lock:
            self.stats.fetches += 1
        try:
            data = await self._fetcher.fetch_bytes(url)
            image = await asyncio.to_thread(self._decoder, url, data)
            self._store(url, image, len(data))
            result = image
        except FetchError as exc:
            with self._lock:
                self.stats.failures += 1
            logger.warning("Image %s unavailable: %s", url, exc)
        except Exception:
            with self._lock:
                self.stats.failures += 1
            logger.exception("Unexpected error loading image %s", url)
        finally:
            with self._lock:
                self._pending.pop(url, None)
            if not future.done():
                future.set_result(result)

    def _store(self, url: str, image: Image.Image, size: int) -> None:
        if size > self._max_bytes:
            logger.debug("Image %s (%s bytes) exceeds cache budget; not retained", url, size)
            return

        with self._lock:
            previous = self._entries.pop(url, None)
            if previous is not None:
                self._current_bytes -= previous.size
            self._entries[url] = _Entry(image=image, size=size)
            self._current_bytes += size

            while len(self._entries) > self._max_entries or self._current_bytes > self._max_bytes:
                evicted_url, evicted = self._entries.popitem(last=False)
                self._current_bytes -= evicted.size
                self.stats.evictions += 1
                logger.debug("Evicted image %s", evicted_url)
