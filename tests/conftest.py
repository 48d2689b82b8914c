from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from cmsfetch import CmsFetchClient

BASE_URL = "https://api.example.com"


@pytest.fixture
def make_client() -> Callable[..., CmsFetchClient]:
    def factory(handler: Any, **kwargs: Any) -> CmsFetchClient:
        return CmsFetchClient(
            base_url=BASE_URL,
            httpx_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            **kwargs,
        )

    return factory
