"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Valida los payloads de la API en el borde: un cambio de esquema se detecta
  al decodificar y no más tarde en un controlador.
- Los alias reproducen las claves camelCase del JSON sin ensuciar los nombres
  de atributo.

Nota:
- Estos modelos describen *qué* devuelve el catálogo, no *cómo* se obtiene.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class EntitySummary(_WireModel):
    """Elemento del listado. Identidad = `id`; inmutable una vez recibido."""

    id: int = Field(..., description="Identificador estable en la API.")
    name: str = Field(..., description="Nombre visible de la entidad.")
    href: str = Field(default="", description="URL del recurso de detalle.")
    image_url: str = Field(
        default="",
        alias="image",
        description="URL de la miniatura.",
    )


class Pageable(_WireModel):
    current_page: int = Field(default=0, ge=0, alias="currentPage")
    elements_on_page: int = Field(default=0, ge=0, alias="elementsOnPage")
    total_elements: int = Field(default=0, ge=0, alias="totalElements")
    total_pages: int = Field(default=0, ge=0, alias="totalPages")
    previous_page: str = Field(default="", alias="previousPage")
    next_page: str = Field(default="", alias="nextPage")


class ListResponse(_WireModel):
    """Respuesta cruda de `GET /digimon`."""

    content: list[EntitySummary] = Field(default_factory=list)
    pageable: Pageable | None = None


class Page(_WireModel):
    """Una porción paginada del listado, con su cursor y totales."""

    items: tuple[EntitySummary, ...] = Field(default_factory=tuple)
    page_index: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)
    total_items: int = Field(default=0, ge=0)
    next_page: str | None = None

    @property
    def is_last(self) -> bool:
        return self.page_index + 1 >= self.total_pages

    @classmethod
    def from_response(cls, response: ListResponse) -> "Page":
        items = tuple(response.content)
        pageable = response.pageable
        if pageable is None:
            # Sin metadatos de paginación: una sola página con todo el contenido.
            return cls(items=items, page_index=0, total_pages=1, total_items=len(items))
        return cls(
            items=items,
            page_index=pageable.current_page,
            total_pages=pageable.total_pages,
            total_items=pageable.total_elements,
            next_page=pageable.next_page or None,
        )


class DetailImage(_WireModel):
    href: str
    transparent: bool = False


class Level(_WireModel):
    id: int
    level: str


class EntityType(_WireModel):
    id: int
    type: str


class Attribute(_WireModel):
    id: int
    attribute: str


class EntityField(_WireModel):
    id: int
    field: str
    image: str = ""


class Description(_WireModel):
    origin: str = ""
    language: str
    description: str


class Skill(_WireModel):
    id: int
    skill: str
    translation: str = ""
    description: str = ""


class EvolutionRef(_WireModel):
    id: int
    digimon: str
    condition: str = ""
    image: str = ""
    url: str = ""


class EntityDetail(_WireModel):
    """Ficha completa de una entidad (`GET /digimon/{id}`).

    Se pide bajo demanda al abrir el detalle; no se cachea entre sesiones.
    """

    id: int
    name: str
    x_antibody: bool = Field(default=False, alias="xAntibody")
    images: list[DetailImage] = Field(default_factory=list)
    levels: list[Level] = Field(default_factory=list)
    types: list[EntityType] = Field(default_factory=list)
    attributes: list[Attribute] = Field(default_factory=list)
    fields: list[EntityField] = Field(default_factory=list)
    release_date: str = Field(default="", alias="releaseDate")
    descriptions: list[Description] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    prior_evolutions: list[EvolutionRef] = Field(default_factory=list, alias="priorEvolutions")
    next_evolutions: list[EvolutionRef] = Field(default_factory=list, alias="nextEvolutions")

    @property
    def primary_image_url(self) -> str | None:
        if not self.images:
            return None
        return self.images[0].href or None

    def description_for(self, language: str = "en_us") -> str | None:
        for item in self.descriptions:
            if item.language == language:
                return item.description
        return None
