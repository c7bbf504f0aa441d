"""Taxonomía cerrada de errores de red.

Reglas:
- El transporte solo deja escapar subclases de `FetchError`.
- Los controladores nunca las relanzan: las convierten en estado explícito.
- Si un transporte lanza otra cosa, el controlador la envuelve en
  `UnexpectedTransportError`; el estado nunca se queda a medias.
- `DecodeError` e `InvalidURLError` indican un bug (deriva de esquema o URL mal
  construida); el resto son condiciones transitorias.
"""

from __future__ import annotations


class FetchError(Exception):
    """Base de todos los fallos del transporte."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidURLError(FetchError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class NoDataError(FetchError):
    retryable = True

    def __init__(self, url: str | None = None) -> None:
        super().__init__("No data received")
        self.url = url


class HttpStatusError(FetchError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Invalid server response (status: {status_code})")
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status_code in (408, 429) or self.status_code >= 500


class DecodeError(FetchError):
    def __init__(self, details: str) -> None:
        super().__init__(f"Could not decode response: {details}")
        self.details = details


class RequestTimeoutError(FetchError):
    retryable = True

    def __init__(self, url: str, timeout: float | None = None) -> None:
        suffix = f" after {timeout:g}s" if timeout else ""
        super().__init__(f"Request timed out{suffix}: {url}")
        self.url = url
        self.timeout = timeout


class ConnectivityError(FetchError):
    retryable = True

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Connection failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class ImageDecodeError(FetchError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Could not decode image {url}: {reason}")
        self.url = url
        self.reason = reason


class UnexpectedTransportError(FetchError):
    """El transporte lanzó algo fuera de la taxonomía; se envuelve para no perderlo."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Unexpected transport failure: {cause.__class__.__name__}: {cause}")
        self.cause = cause


__all__ = [
    "ConnectivityError",
    "DecodeError",
    "FetchError",
    "HttpStatusError",
    "ImageDecodeError",
    "InvalidURLError",
    "NoDataError",
    "RequestTimeoutError",
    "UnexpectedTransportError",
]
