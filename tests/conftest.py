"""Fixtures compartidas: transporte falso en memoria y builders de payloads."""

from __future__ import annotations

import asyncio
from io import BytesIO
from typing import Any, Callable

import pytest
import pytest_asyncio
from PIL import Image

from core.config import AppSettings
from core.domain.models import EntityDetail, EntitySummary, Page
from core.errors import HttpStatusError
from core.services.dispatcher import MainDispatcher


def entity(entity_id: int, name: str) -> EntitySummary:
    return EntitySummary(
        id=entity_id,
        name=name,
        href=f"https://digi-api.com/api/v1/digimon/{entity_id}",
        image=f"https://digi-api.com/images/digimon/w/{name}.png",
    )


def make_page(items: list[EntitySummary], page_index: int = 0, total_pages: int = 1) -> Page:
    return Page(
        items=tuple(items),
        page_index=page_index,
        total_pages=total_pages,
        total_items=len(items) * total_pages,
    )


def png_bytes(color: tuple[int, int, int] = (255, 0, 0), size: tuple[int, int] = (4, 4)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeTransport:
    """Transporte controlable: respuestas por página/consulta y compuertas."""

    def __init__(self) -> None:
        self.pages: dict[int, Page | Exception] = {}
        self.search_results: dict[str, Page | Exception] = {}
        self.details: dict[int, EntityDetail | Exception] = {}
        self.images: dict[str, bytes | Exception] = {}

        self.list_calls: list[tuple[int, int]] = []
        self.search_calls: list[str] = []
        self.detail_calls: list[int] = []
        self.bytes_calls: list[str] = []

        self.list_in_flight = 0
        self.max_list_in_flight = 0
        self.gate: asyncio.Event | None = None

    def hold(self) -> asyncio.Event:
        """Bloquea todas las respuestas hasta que se haga `set()` del evento."""

        self.gate = asyncio.Event()
        return self.gate

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

    @staticmethod
    def _resolve(value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_list(self, page: int, page_size: int) -> Page:
        self.list_calls.append((page, page_size))
        self.list_in_flight += 1
        self.max_list_in_flight = max(self.max_list_in_flight, self.list_in_flight)
        try:
            await self._wait()
            return self._resolve(self.pages.get(page, HttpStatusError(404)))
        finally:
            self.list_in_flight -= 1

    async def fetch_detail(self, entity_id: int) -> EntityDetail:
        self.detail_calls.append(entity_id)
        await self._wait()
        return self._resolve(self.details.get(entity_id, HttpStatusError(404)))

    async def search(self, query: str) -> Page:
        self.search_calls.append(query)
        await self._wait()
        return self._resolve(self.search_results.get(query, HttpStatusError(400)))

    async def fetch_bytes(self, url: str) -> bytes:
        self.bytes_calls.append(url)
        await self._wait()
        return self._resolve(self.images.get(url, HttpStatusError(404)))


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(_env_file=None, page_size=2)


@pytest.fixture
def make_entity() -> Callable[[int, str], EntitySummary]:
    return entity


@pytest.fixture
def page_factory() -> Callable[..., Page]:
    return make_page


@pytest.fixture
def png() -> Callable[..., bytes]:
    return png_bytes


@pytest_asyncio.fixture
async def dispatcher():
    main = MainDispatcher()
    yield main
    await main.aclose()


async def settle(rounds: int = 20) -> None:
    """Deja avanzar al event loop hasta que las tasks lleguen a sus compuertas."""

    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def let_run() -> Callable[..., Any]:
    return settle
