"""Configuración de logging para los puntos de entrada (CLI).

El Core solo usa `logging.getLogger(__name__)`; quien lo embebe decide los
handlers. La CLI instala un `RichHandler`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGERS = ("core", "adapters", "cli")


def setup_logging(level: str = "WARNING", *, console: Console | None = None) -> None:
    """Instala un único `RichHandler` en los loggers del proyecto."""

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%H:%M:%S]",
    )
    handler.setLevel(log_level)

    for name in _ROOT_LOGGERS:
        logger = logging.getLogger(name)
        # Evita handlers duplicados si se llama más de una vez.
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(log_level)
        logger.propagate = False
