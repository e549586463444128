"""Exception taxonomy for the chat core."""

from __future__ import annotations


class ChatError(Exception):
    """Base class for every failure raised by the chat core."""


class TransportError(ChatError):
    """The completion request failed: network error or non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_type: str = "",
        error_code: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type
        self.error_code = error_code


class NormalizationError(TransportError):
    """The response body matched neither known completion shape."""


class PersistenceError(ChatError):
    """Stored preferences are missing or could not be decoded."""


class InvalidPreferencesError(ChatError, ValueError):
    """Preferences rejected by strict validation."""
