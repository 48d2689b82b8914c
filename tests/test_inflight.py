from __future__ import annotations

import asyncio

import pytest

from cmsfetch.inflight import InFlightRegistry


def test_acquire_returns_registered_future() -> None:
    async def run() -> None:
        registry = InFlightRegistry()
        future = asyncio.get_running_loop().create_future()

        assert registry.acquire("GET:/posts:") is None
        registry.register("GET:/posts:", future)

        assert registry.acquire("GET:/posts:") is future
        assert "GET:/posts:" in registry
        assert len(registry) == 1
        future.cancel()

    asyncio.run(run())


def test_register_rejects_duplicate_live_key() -> None:
    async def run() -> None:
        registry = InFlightRegistry()
        loop = asyncio.get_running_loop()
        first = loop.create_future()
        registry.register("GET:/posts:", first)
        with pytest.raises(RuntimeError, match="already in flight"):
            registry.register("GET:/posts:", loop.create_future())
        first.cancel()

    asyncio.run(run())


@pytest.mark.parametrize("outcome", ["result", "exception", "cancel"])
def test_entry_is_released_when_future_settles(outcome: str) -> None:
    async def run() -> int:
        registry = InFlightRegistry()
        future = asyncio.get_running_loop().create_future()
        registry.register("GET:/posts:", future)

        if outcome == "result":
            future.set_result({"ok": True})
        elif outcome == "exception":
            future.set_exception(RuntimeError("boom"))
        else:
            future.cancel()
        await asyncio.sleep(0)
        return len(registry)

    assert asyncio.run(run()) == 0


def test_release_is_idempotent() -> None:
    registry = InFlightRegistry()
    registry.release("GET:/missing:")
    assert len(registry) == 0


def test_acquire_ignores_settled_future_before_callback_runs() -> None:
    async def run() -> tuple[object, int]:
        registry = InFlightRegistry()
        future = asyncio.get_running_loop().create_future()
        registry.register("GET:/posts:", future)
        future.set_result({"ok": True})
        return registry.acquire("GET:/posts:"), len(registry)

    assert asyncio.run(run()) == (None, 0)
