"""Contrato del transporte del catálogo.

Por qué Protocol:
- Los controladores dependen de esta forma, no del cliente httpx concreto.
- Los tests sustituyen el transporte por fakes en memoria sin herencia.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import EntityDetail, Page


@runtime_checkable
class CatalogTransport(Protocol):
    """Operaciones de red que necesita el Core.

    Reglas de diseño:
    - Todo es asíncrono: cada llamada es un punto de suspensión.
    - Cada llamada termina exactamente una vez: devuelve el valor o lanza una
      subclase de `core.errors.FetchError`. Nada más escapa.
    """

    async def fetch_list(self, page: int, page_size: int) -> Page:
        ...

    async def fetch_detail(self, entity_id: int) -> EntityDetail:
        ...

    async def search(self, query: str) -> Page:
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        """GET plano de una URL absoluta (imágenes)."""

        ...
