"""Cliente HTTP del catálogo (digi-api).

Responsabilidad:
- Construir URLs (base fija + path + query codificada).
- Validar el status y el cuerpo de cada respuesta.
- Decodificar JSON en modelos del dominio.
- Traducir cualquier fallo de httpx/pydantic a `core.errors`.

Implementa `core.interfaces.transport.CatalogTransport`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, TypeVar
from urllib.parse import quote, urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import EntityDetail, ListResponse, Page
from core.errors import (
    ConnectivityError,
    DecodeError,
    HttpStatusError,
    InvalidURLError,
    NoDataError,
    RequestTimeoutError,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_LIST_PATH = "digimon"


def _is_http_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


class DigiApiClient:
    """Transporte asíncrono contra la API REST del catálogo."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._owns_client = client is None
        self._client = client or build_async_client(self._settings)

    async def __aenter__(self) -> "DigiApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # --- construcción de URLs ------------------------------------------------

    def build_url(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        base = self._settings.api_base_url.rstrip("/")
        url = f"{base}/{path.lstrip('/')}"
        if params:
            query = "&".join(f"{key}={quote(str(value), safe='')}" for key, value in params.items())
            url = f"{url}?{query}"
        if not _is_http_url(url):
            raise InvalidURLError(url)
        return url

    # --- operaciones del contrato -------------------------------------------

    async def fetch_list(self, page: int, page_size: int) -> Page:
        url = self.build_url(_LIST_PATH, {"page": page, "pageSize": page_size})
        response = await self._get(url)
        page_obj = Page.from_response(self._decode_list(response))
        logger.debug(
            "Fetched page %s/%s with %s items",
            page_obj.page_index,
            page_obj.total_pages,
            len(page_obj.items),
        )
        return page_obj

    async def fetch_detail(self, entity_id: int) -> EntityDetail:
        url = self.build_url(f"{_LIST_PATH}/{int(entity_id)}")
        response = await self._get(url)
        return self._decode(response, EntityDetail)

    async def search(self, query: str) -> Page:
        url = self.build_url(_LIST_PATH, {"name": query})
        response = await self._get(url)
        page_obj = Page.from_response(self._decode_list(response))
        logger.debug("Search %r returned %s items", query, len(page_obj.items))
        return page_obj

    async def fetch_bytes(self, url: str) -> bytes:
        if not _is_http_url(url):
            raise InvalidURLError(url)
        response = await self._get(url)
        return response.content

    # --- internos ------------------------------------------------------------

    async def _get(self, url: str) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(url, self._settings.http_timeout_seconds) from exc
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(url) from exc
        except httpx.TransportError as exc:
            raise ConnectivityError(url, str(exc) or exc.__class__.__name__) from exc
        except httpx.DecodingError as exc:
            raise DecodeError(str(exc)) from exc
        except httpx.RequestError as exc:
            # TooManyRedirects y demás errores de petición fuera de TransportError.
            raise ConnectivityError(url, str(exc) or exc.__class__.__name__) from exc

        if not 200 <= response.status_code <= 299:
            logger.warning("HTTP %s for %s", response.status_code, url)
            raise HttpStatusError(response.status_code)
        if not response.content:
            raise NoDataError(url)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(str(exc)) from exc

    def _decode(self, response: httpx.Response, model: type[ModelT]) -> ModelT:
        payload = self._json(response)
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            logger.error("Schema mismatch decoding %s: %s", model.__name__, exc)
            raise DecodeError(str(exc)) from exc

    def _decode_list(self, response: httpx.Response) -> ListResponse:
        payload = self._json(response)
        # Algunas búsquedas devuelven la lista desnuda, sin `pageable`.
        if isinstance(payload, list):
            payload = {"content": payload}
        try:
            return ListResponse.model_validate(payload)
        except ValidationError as exc:
            logger.error("Schema mismatch decoding list response: %s", exc)
            raise DecodeError(str(exc)) from exc
