"""Exportación JSON de proyecciones y fichas.

Por qué JSON:
- Permite volcar lo que ve la UI (listado o resultados de búsqueda) para
  inspección o fixtures de tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from core.domain.models import EntityDetail, EntitySummary


def _write_json(payload: object, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def export_entities_json(*, entities: Iterable[EntitySummary], output_path: Path) -> Path:
    """Exporta una proyección a JSON UTF-8 con formato estable (claves de la API)."""

    payload = [item.model_dump(mode="json", by_alias=True) for item in entities]
    return _write_json(payload, output_path)


def export_detail_json(*, detail: EntityDetail, output_path: Path) -> Path:
    return _write_json(detail.model_dump(mode="json", by_alias=True), output_path)
