"""Configuración del Core.

Por qué aquí:
- Centraliza los parámetros (pydantic-settings) sin que los controladores lean
  variables de entorno por su cuenta.
- `AppSettings` se construye en el borde (CLI, tests) y se pasa explícitamente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://digi-api.com/api/v1"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "digi-catalog"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "digi-catalog"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "digi-catalog"
    return Path.home() / ".config" / "digi-catalog"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Los defaults reproducen el comportamiento del cliente móvil:
    páginas de 20 elementos, timeout de 30 s y búsqueda remota a partir de
    2 caracteres.
    """

    model_config = SettingsConfigDict(
        env_prefix="DIGI_CATALOG_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default=DEFAULT_BASE_URL,
        min_length=8,
        description="Base URL de la API REST del catálogo.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="digi-catalog/0.1 (+https://local)",
        min_length=1,
        description="User-Agent enviado en todas las peticiones.",
    )

    page_size: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Elementos por página en el listado paginado.",
    )
    search_min_length: int = Field(
        default=2,
        ge=1,
        description="Longitud mínima de la consulta para buscar en la API.",
    )
    search_debounce_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Espera antes de lanzar la búsqueda remota (0 = sin debounce).",
    )

    image_cache_max_entries: int = Field(
        default=200,
        ge=1,
        description="Número máximo de imágenes decodificadas en memoria.",
    )
    image_cache_max_bytes: int = Field(
        default=32 * 1024 * 1024,
        ge=1,
        description="Presupuesto de memoria de la caché de imágenes (bytes codificados).",
    )

    description_language: str = Field(
        default="en_us",
        min_length=1,
        description="Idioma preferido para la descripción del detalle.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging para la CLI.",
    )
