"""Canonical request descriptors and deduplication keys."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from .config import DEFAULT_TIMEOUT, SAFE_METHODS, SESSION_ENDPOINT_PATHS
from .request_options import MultipartBody, RequestOptions

MAX_ATTEMPT = 1
MULTIPART_BODY_KEY = "multipart"
JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class RequestDescriptor:
    path: str
    method: str = "GET"
    body: object | None = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout: float = DEFAULT_TIMEOUT
    redirect_on_auth_failure: bool = False
    attempt: int = 0

    @property
    def is_multipart(self) -> bool:
        return isinstance(self.body, MultipartBody)

    @property
    def targets_session_endpoint(self) -> bool:
        return any(endpoint in self.path for endpoint in SESSION_ENDPOINT_PATHS)

    @property
    def can_refresh(self) -> bool:
        return self.attempt < MAX_ATTEMPT and not self.targets_session_endpoint

    def for_retry(self) -> "RequestDescriptor":
        """Copy of this descriptor for the single post-refresh replay."""
        if self.attempt >= MAX_ATTEMPT:
            raise ValueError("request has already been retried after a session refresh")
        return replace(self, attempt=self.attempt + 1)


def normalize_path(path: str) -> str:
    return "/" + path.lstrip("/")


def _normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    clean: dict[str, str] = {}
    for key, value in headers.items():
        clean[str(key)] = str(value)
    return clean


def build_descriptor(
    path: str,
    options: RequestOptions | None = None,
    *,
    default_timeout: float = DEFAULT_TIMEOUT,
) -> RequestDescriptor:
    options = options or RequestOptions()
    headers = _normalize_headers(options.headers)
    if not isinstance(options.body, MultipartBody):
        if not any(key.lower() == "content-type" for key in headers):
            headers["Content-Type"] = JSON_CONTENT_TYPE
    timeout = options.timeout if options.timeout is not None else default_timeout
    return RequestDescriptor(
        path=normalize_path(path),
        method=(options.method or "GET").upper(),
        body=options.body,
        headers=MappingProxyType(headers),
        timeout=float(timeout),
        redirect_on_auth_failure=options.redirect_on_auth_failure,
    )


def _body_key(body: object | None) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    if isinstance(body, MultipartBody):
        return MULTIPART_BODY_KEY
    if isinstance(body, (bytes, bytearray, memoryview)):
        return f"bytes:{len(body)}"
    try:
        return json.dumps(body, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return "body"


def dedup_key(descriptor: RequestDescriptor) -> str | None:
    """Key identifying identical concurrent reads; ``None`` for mutating methods."""
    if descriptor.method not in SAFE_METHODS:
        return None
    return f"{descriptor.method}:{descriptor.path}:{_body_key(descriptor.body)}"
