"""Client configuration constants and base URL resolution."""

from __future__ import annotations

import logging
import os

from .exceptions import ConfigurationError
from .security import validate_base_url

logger = logging.getLogger(__name__)

BASE_URL_ENV_VAR = "CMS_API_URL"
ENVIRONMENT_ENV_VAR = "CMS_ENV"
PRODUCTION = "production"
DEFAULT_LOCAL_BASE_URL = "http://localhost:3001"

# Seconds.
DEFAULT_TIMEOUT = 30.0
UPLOAD_TIMEOUT = 60.0

REFRESH_PATH = "/auth/refresh"
LOGOUT_PATH = "/auth/logout"
SESSION_ENDPOINT_PATHS = (REFRESH_PATH, LOGOUT_PATH)
LOGIN_DESTINATION = "/login"

CSRF_COOKIE_NAME = "csrf-token"
CSRF_HEADER_NAME = "x-csrf-token"

SAFE_METHODS = frozenset({"GET", "HEAD"})


def resolve_base_url(
    base_url: str | None = None,
    *,
    environment: str | None = None,
    allow_http: bool = False,
) -> str:
    """Resolve the backend prefix once at startup.

    An explicit ``base_url`` wins over ``CMS_API_URL``. When neither is set,
    production deployments fail hard while every other environment falls back
    to the local development server.
    """
    env = (environment if environment is not None else os.getenv(ENVIRONMENT_ENV_VAR, "")).lower()
    url = base_url or os.getenv(BASE_URL_ENV_VAR)

    if not url:
        if env == PRODUCTION:
            raise ConfigurationError(
                f"{BASE_URL_ENV_VAR} is not set; the client cannot function without a configured backend URL"
            )
        logger.warning("%s not set, using default %s", BASE_URL_ENV_VAR, DEFAULT_LOCAL_BASE_URL)
        url = DEFAULT_LOCAL_BASE_URL

    url = url.rstrip("/")
    try:
        validate_base_url(url, allow_http=allow_http)
    except ValueError as exc:
        raise ConfigurationError(f"{BASE_URL_ENV_VAR} {url!r} is not a valid URL: {exc}") from exc
    return url
