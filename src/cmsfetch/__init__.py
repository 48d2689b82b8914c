"""Resilient asynchronous network client for the CMS backend."""

from .client import CmsFetchClient
from .config import DEFAULT_TIMEOUT, UPLOAD_TIMEOUT, resolve_base_url
from .descriptor import RequestDescriptor, build_descriptor, dedup_key
from .exceptions import (
    CmsFetchError,
    CmsFetchHTTPError,
    CmsFetchNetworkError,
    CmsFetchTimeoutError,
    CmsFetchUnauthorizedError,
    ConfigurationError,
    get_error_message,
)
from .inflight import InFlightRegistry
from .models import NO_CONTENT, ErrorEnvelope
from .request_options import MultipartBody, RequestOptions
from .session import CookieHeaderSessionStore, CookieJarSessionStore, Navigator, SessionStore

__all__ = [
    "CmsFetchClient",
    "CmsFetchError",
    "CmsFetchHTTPError",
    "CmsFetchNetworkError",
    "CmsFetchTimeoutError",
    "CmsFetchUnauthorizedError",
    "ConfigurationError",
    "CookieHeaderSessionStore",
    "CookieJarSessionStore",
    "DEFAULT_TIMEOUT",
    "ErrorEnvelope",
    "InFlightRegistry",
    "MultipartBody",
    "NO_CONTENT",
    "Navigator",
    "RequestDescriptor",
    "RequestOptions",
    "SessionStore",
    "UPLOAD_TIMEOUT",
    "build_descriptor",
    "dedup_key",
    "get_error_message",
    "resolve_base_url",
]
