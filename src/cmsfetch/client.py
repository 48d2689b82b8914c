"""Asynchronous client for the CMS backend API.

Every frontend data call goes through :class:`CmsFetchClient`, which

* coalesces identical concurrent reads through an :class:`InFlightRegistry`,
* bounds each dispatch with a cancellation timer,
* recovers from an expired session with one silent refresh and replay,
* normalizes responses into a parsed value, ``NO_CONTENT`` or a typed error.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

import httpx

from .config import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    DEFAULT_TIMEOUT,
    LOGIN_DESTINATION,
    LOGOUT_PATH,
    REFRESH_PATH,
    resolve_base_url,
)
from .descriptor import RequestDescriptor, build_descriptor, dedup_key
from .exceptions import (
    CmsFetchError,
    CmsFetchHTTPError,
    CmsFetchNetworkError,
    CmsFetchTimeoutError,
    CmsFetchUnauthorizedError,
)
from .inflight import InFlightRegistry
from .models import NO_CONTENT, parse_error_envelope
from .request_options import MultipartBody, RequestOptions
from .security import parse_retry_after, sanitize_headers
from .session import CookieJarSessionStore, Navigator, SessionStore

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _merge_options(options: RequestOptions | None, method: str, body: object = _UNSET) -> RequestOptions:
    merged = replace(options or RequestOptions(), method=method)
    if body is not _UNSET:
        merged = replace(merged, body=body)
    return merged


def _body_kwargs(body: object | None) -> dict[str, Any]:
    if body is None:
        return {}
    if isinstance(body, MultipartBody):
        return {"files": dict(body.files), "data": dict(body.data) if body.data else None}
    if isinstance(body, str):
        return {"content": body.encode("utf-8")}
    if isinstance(body, (bytes, bytearray, memoryview)):
        return {"content": bytes(body)}
    return {"json": body}


class CmsFetchClient:
    """Asynchronous client with in-flight deduplication and silent session refresh."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = True,
        httpx_client: httpx.AsyncClient | None = None,
        allow_http: bool = False,
        environment: str | None = None,
        registry: InFlightRegistry | None = None,
        session_store: SessionStore | None = None,
        navigator: Navigator | None = None,
        login_destination: str = LOGIN_DESTINATION,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be greater than 0")
        self.base_url = resolve_base_url(base_url, environment=environment, allow_http=allow_http)
        self.timeout = float(timeout)
        self._default_headers = {
            "Accept": "application/json",
            "Cache-Control": "no-store",
            "User-Agent": "cmsfetch/0.1.0",
        }
        if headers:
            self._default_headers.update({str(k): str(v) for k, v in headers.items()})

        self._httpx = httpx_client or httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=follow_redirects,
            trust_env=False,
        )
        self.registry = registry if registry is not None else InFlightRegistry()
        self._session_store = session_store or CookieJarSessionStore(self._httpx.cookies)
        self._navigator = navigator
        self._login_destination = login_destination
        self._sleep = sleep

    async def __aenter__(self) -> "CmsFetchClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._httpx.aclose()

    async def request(self, path: str, options: RequestOptions | None = None) -> Any:
        """Issue a call and return its parsed JSON value or ``NO_CONTENT``.

        Identical concurrent GET/HEAD calls share one network operation and
        observe the same value or the same raised error.
        """
        descriptor = build_descriptor(path, options, default_timeout=self.timeout)
        key = dedup_key(descriptor)
        if key is None:
            return await self._execute(descriptor)

        task = self.registry.acquire(key)
        if task is None:
            task = asyncio.ensure_future(self._execute_tracked(key, descriptor))
            self.registry.register(key, task)
        else:
            logger.debug("Coalescing %s with in-flight request", key)
        return await asyncio.shield(task)

    async def _execute_tracked(self, key: str, descriptor: RequestDescriptor) -> Any:
        try:
            return await self._execute(descriptor)
        finally:
            self.registry.release(key)

    async def get(self, path: str, *, options: RequestOptions | None = None) -> Any:
        return await self.request(path, _merge_options(options, "GET"))

    async def post(self, path: str, body: object = _UNSET, *, options: RequestOptions | None = None) -> Any:
        return await self.request(path, _merge_options(options, "POST", body))

    async def put(self, path: str, body: object = _UNSET, *, options: RequestOptions | None = None) -> Any:
        return await self.request(path, _merge_options(options, "PUT", body))

    async def patch(self, path: str, body: object = _UNSET, *, options: RequestOptions | None = None) -> Any:
        return await self.request(path, _merge_options(options, "PATCH", body))

    async def delete(self, path: str, *, options: RequestOptions | None = None) -> Any:
        return await self.request(path, _merge_options(options, "DELETE"))

    async def refresh_session(self) -> bool:
        """Renew the session cookie. Never raises; returns whether the backend accepted it."""
        return await self._refresh(self.timeout)

    async def logout(self) -> None:
        """Best-effort sign-out. Failures are logged and swallowed."""
        descriptor = build_descriptor(LOGOUT_PATH, RequestOptions(method="POST"), default_timeout=self.timeout)
        try:
            await self._send(descriptor)
        except CmsFetchError as exc:
            logger.warning("Ignoring logout failure: %s", exc)

    def _headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        merged = dict(self._default_headers)
        merged.update(descriptor.headers)
        csrf_token = self._session_store.get_cookie(CSRF_COOKIE_NAME)
        if csrf_token:
            merged[CSRF_HEADER_NAME] = csrf_token
        return merged

    async def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        url = f"{self.base_url}{descriptor.path}"
        headers = self._headers(descriptor)
        logger.debug(
            "%s %s attempt=%d headers=%s",
            descriptor.method,
            url,
            descriptor.attempt,
            sanitize_headers(headers),
        )
        call = asyncio.ensure_future(
            self._httpx.request(
                descriptor.method,
                url,
                headers=headers,
                timeout=descriptor.timeout,
                **_body_kwargs(descriptor.body),
            )
        )
        timer = asyncio.ensure_future(self._sleep(descriptor.timeout))
        timed_out = False
        try:
            await asyncio.wait({call, timer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            timer.cancel()
            if not call.done():
                call.cancel()
                timed_out = True
        if timed_out:
            raise CmsFetchTimeoutError(descriptor.timeout)

        try:
            return call.result()
        except httpx.TimeoutException as exc:
            raise CmsFetchTimeoutError(descriptor.timeout, cause=exc) from exc
        except (httpx.TransportError, httpx.InvalidURL, TypeError, ValueError) as exc:
            # Unencodable bodies and malformed paths surface as transport failures.
            message = str(exc) or type(exc).__name__
            raise CmsFetchNetworkError(f"Network error: {message}", cause=exc) from exc

    async def _execute(self, descriptor: RequestDescriptor) -> Any:
        response = await self._send(descriptor)
        if response.status_code == 401:
            return await self._handle_unauthorized(descriptor, response)
        if not response.is_success:
            raise self._http_error(response)
        return self._parse_response(response)

    async def _handle_unauthorized(self, descriptor: RequestDescriptor, response: httpx.Response) -> Any:
        if descriptor.can_refresh and await self._refresh(descriptor.timeout):
            logger.info("Session refreshed, replaying %s %s", descriptor.method, descriptor.path)
            return await self._execute(descriptor.for_retry())

        if descriptor.redirect_on_auth_failure:
            await self.logout()
            await self._navigate()
            return NO_CONTENT
        raise self._http_error(response, CmsFetchUnauthorizedError, fallback="Unauthorized")

    async def _refresh(self, timeout: float) -> bool:
        descriptor = build_descriptor(REFRESH_PATH, RequestOptions(method="POST", timeout=timeout))
        logger.info("Attempting silent session refresh")
        try:
            response = await self._send(descriptor)
        except CmsFetchError as exc:
            logger.warning("Session refresh failed: %s", exc)
            return False
        if not response.is_success:
            logger.warning("Session refresh rejected with status %d", response.status_code)
            return False
        return True

    async def _navigate(self) -> None:
        if self._navigator is None:
            logger.warning("Redirect on auth failure requested but no navigator is configured")
            return
        logger.warning("Session expired, redirecting to %s", self._login_destination)
        try:
            result = self._navigator(self._login_destination)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Ignoring navigator failure during auth redirect")

    @staticmethod
    def _http_error(
        response: httpx.Response,
        error_cls: type[CmsFetchHTTPError] = CmsFetchHTTPError,
        *,
        fallback: str | None = None,
    ) -> CmsFetchHTTPError:
        reason = response.reason_phrase or f"HTTP {response.status_code}"
        error_code = None
        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text or None
            message = fallback or reason
        else:
            envelope = parse_error_envelope(payload)
            if envelope is not None and envelope.message:
                message = envelope.message
            else:
                message = fallback or f"API Error: {reason}"
            if envelope is not None:
                error_code = envelope.error

        return error_cls(
            message,
            status_code=response.status_code,
            error_code=error_code,
            body=payload,
            headers=MappingProxyType(dict(response.headers)),
            request_id=response.headers.get("x-request-id"),
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )

    @staticmethod
    def _parse_response(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return NO_CONTENT
        try:
            return response.json()
        except ValueError:
            return NO_CONTENT
