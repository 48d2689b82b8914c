"""Injected capabilities: session cookie access and post-logout navigation."""

from __future__ import annotations

from typing import Protocol

import httpx

from .security import parse_cookie_header


class SessionStore(Protocol):
    def get_cookie(self, name: str) -> str | None: ...


class Navigator(Protocol):
    """Called with the login destination once a sign-out redirect is due.

    May return an awaitable; the client awaits it before resolving the call.
    """

    def __call__(self, location: str) -> object: ...


class CookieJarSessionStore:
    """Reads cookies from an httpx cookie jar, usually the client's own."""

    def __init__(self, cookies: httpx.Cookies) -> None:
        self._cookies = cookies

    def get_cookie(self, name: str) -> str | None:
        # Cookies.get() raises CookieConflict when several domains set the name.
        for cookie in self._cookies.jar:
            if cookie.name == name:
                return cookie.value
        return None


class CookieHeaderSessionStore:
    """Reads cookies from a raw ``Cookie`` header forwarded by a server-side caller."""

    def __init__(self, header: str | None) -> None:
        self._cookies = parse_cookie_header(header)

    def get_cookie(self, name: str) -> str | None:
        return self._cookies.get(name) or None
