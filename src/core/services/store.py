"""Store de entidades cargadas.

Secuencia ordenada, solo-append durante la paginación y única por `id`.
Solo se escribe desde jobs del `MainDispatcher`.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from core.domain.models import EntitySummary


class EntityStore:
    def __init__(self, items: Iterable[EntitySummary] = ()) -> None:
        self._items: list[EntitySummary] = []
        self._ids: set[int] = set()
        self.extend(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EntitySummary]:
        return iter(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._ids

    def extend(self, items: Iterable[EntitySummary]) -> list[EntitySummary]:
        """Añade al final ignorando ids ya presentes; devuelve lo añadido."""

        added: list[EntitySummary] = []
        for item in items:
            if item.id in self._ids:
                continue
            self._ids.add(item.id)
            self._items.append(item)
            added.append(item)
        return added

    def snapshot(self) -> tuple[EntitySummary, ...]:
        return tuple(self._items)

    def filter_by_name(self, query: str) -> tuple[EntitySummary, ...]:
        """Coincidencia por subcadena sin distinguir mayúsculas, en orden del store."""

        needle = query.casefold()
        return tuple(item for item in self._items if needle in item.name.casefold())

    def clear(self) -> None:
        self._items.clear()
        self._ids.clear()
