"""Variantes de estado de los controladores.

Cada máquina de estados es una unión de dataclasses congeladas: una
combinación ilegal (p.ej. "cargando" y "agotado" a la vez) no se puede
construir.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from core.domain.models import EntityDetail, EntitySummary
from core.errors import FetchError


# --- Paginación -------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    page: int = 0
    exhausted: bool = False


@dataclass(frozen=True)
class Loading:
    page: int


@dataclass(frozen=True)
class Failed:
    page: int
    error: FetchError

    @property
    def retryable(self) -> bool:
        return self.error.retryable


PaginationState = Union[Idle, Loading, Failed]


# --- Búsqueda ---------------------------------------------------------------


class ResultSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class Browsing:
    pass


@dataclass(frozen=True)
class Searching:
    query: str
    results: tuple[EntitySummary, ...] = field(default_factory=tuple)
    source: ResultSource = ResultSource.LOCAL
    pending: bool = False


SearchState = Union[Browsing, Searching]


class ViewMode(str, Enum):
    BROWSING = "browsing"
    SEARCHING = "searching"


# --- Detalle ----------------------------------------------------------------


@dataclass(frozen=True)
class DetailIdle:
    pass


@dataclass(frozen=True)
class DetailLoading:
    entity_id: int


@dataclass(frozen=True)
class DetailLoaded:
    detail: EntityDetail


@dataclass(frozen=True)
class DetailFailed:
    entity_id: int
    error: FetchError


DetailState = Union[DetailIdle, DetailLoading, DetailLoaded, DetailFailed]
