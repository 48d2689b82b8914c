"""Per-request options for the CMS client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class MultipartBody:
    """Opaque multipart payload; httpx encodes it and sets the boundary itself."""

    files: Mapping[str, Any]
    data: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class RequestOptions:
    method: str = "GET"
    body: object | None = None
    headers: Mapping[str, str] | None = None
    timeout: float | None = None
    redirect_on_auth_failure: bool = False
