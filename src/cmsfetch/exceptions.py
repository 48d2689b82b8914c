"""Client-specific exceptions."""

from __future__ import annotations

from typing import Mapping


class CmsFetchError(Exception):
    """Base exception for all CMS client failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        request_id: str | None = None,
        retry_after: float | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.request_id = request_id
        self.retry_after = retry_after
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return str(self.args[0])
        parts = [f"{self.status_code}"]
        if self.error_code:
            parts.append(self.error_code)
        return " ".join(parts) + f": {self.args[0]}"


class ConfigurationError(ValueError):
    """Raised at construction when the backend base URL is missing or invalid."""


class CmsFetchHTTPError(CmsFetchError):
    """Raised for HTTP non-success responses."""


class CmsFetchUnauthorizedError(CmsFetchHTTPError):
    """Raised when a 401 survives the refresh protocol and no redirect was requested."""


class CmsFetchNetworkError(CmsFetchError):
    """Raised for transport-level failures like DNS, TCP and TLS errors."""


class CmsFetchTimeoutError(CmsFetchError):
    """Raised when a request exceeds its cancellation timeout."""

    def __init__(self, timeout: float, *, cause: Exception | None = None) -> None:
        super().__init__(f"Request timeout after {timeout:g} seconds", cause=cause)
        self.timeout = timeout


def get_error_message(error: object, fallback: str = "Something went wrong") -> str:
    """Best-effort user-facing message for any raised or returned error value."""
    if isinstance(error, CmsFetchError) and error.message:
        return error.message
    if isinstance(error, Exception) and str(error):
        return str(error)
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping):
        message = error.get("message")
        if isinstance(message, str):
            return message
    maybe_message = getattr(error, "message", None)
    if isinstance(maybe_message, str):
        return maybe_message
    return fallback
