"""Custom exception hierarchy for pytailwind."""

from __future__ import annotations


class TailwindError(Exception):
    """Base exception for all pytailwind errors."""


class TailwindConfigError(TailwindError):
    """Invalid or missing configuration."""


class TailwindValidationError(TailwindError):
    """A controller host or local key failed validation.

    Raised before any network call is made.
    """


class TailwindConnectivityError(TailwindError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        host: str = "",
    ) -> None:
        self.status_code = status_code
        self.host = host
        super().__init__(message)


class TailwindApiError(TailwindError):
    """Controller answered with ``"result": "Fail"``."""

    def __init__(
        self,
        message: str,
        *,
        info: str | None = None,
        host: str = "",
    ) -> None:
        self.info = info
        self.host = host
        super().__init__(message)


class TailwindUninitializedError(TailwindError):
    """A command was issued before a client exists."""


class TailwindPairingError(TailwindError):
    """Pairing could not produce any usable door."""


class TailwindPayloadError(TailwindError):
    """An inbound push payload is malformed."""
