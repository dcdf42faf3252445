"""Tests for IncrementalLoader: batching, state machine, concurrency guard, cancellation, failures."""

import asyncio

import pytest

from rolodex.application import AggregateStore, IncrementalLoader
from rolodex.application.load_machine import (
    FAILED,
    FULLY_LOADED,
    IDLE,
    INITIAL_READY,
)
from rolodex.config import LoaderSettings
from rolodex.infrastructure import StaticContactProvider


def _raw(n: int, prefix: str = "") -> list[dict]:
    return [
        {"id": f"{prefix}{i}", "name": f"Contact {i:03d}", "modificationDate": 1_600_000_000 + i}
        for i in range(n)
    ]


def _loader(provider, *, delay_ms: float = 10, initial: int = 50, batch: int = 50):
    store = AggregateStore()
    settings = LoaderSettings(initial_batch=initial, batch_size=batch, background_delay_ms=delay_ms)
    return IncrementalLoader(provider, store, settings), store


class GatedProvider:
    """Blocks fetch_all until the test opens the gate."""

    def __init__(self, records: list[dict]) -> None:
        self.records = records
        self.gate = asyncio.Event()
        self.calls = 0

    async def fetch_all(self) -> list[dict]:
        self.calls += 1
        await self.gate.wait()
        return list(self.records)


class BrokenProvider:
    async def fetch_all(self):
        raise RuntimeError("disk on fire")


@pytest.mark.asyncio
async def test_initial_batch_then_background_drain() -> None:
    loader, store = _loader(StaticContactProvider(_raw(120)))
    assert loader.state == IDLE

    assert await loader.load_all() is True
    assert len(store.visible) == 50
    assert store.pending_count == 70
    assert loader.state == INITIAL_READY

    await loader.wait_until_loaded()
    assert len(store.visible) == 120
    assert loader.state == FULLY_LOADED
    assert [c.id for c in store.visible] == [str(i) for i in range(120)]


@pytest.mark.asyncio
async def test_small_set_is_fully_loaded_immediately() -> None:
    loader, store = _loader(StaticContactProvider(_raw(10)))
    await loader.load_all()
    assert len(store.visible) == 10
    assert loader.fully_loaded


@pytest.mark.asyncio
async def test_visible_aggregate_grows_monotonically() -> None:
    loader, store = _loader(StaticContactProvider(_raw(120)), delay_ms=1, batch=20)
    sizes = []
    store.subscribe(lambda: sizes.append(len(store.visible)))
    await loader.load_all()
    await loader.wait_until_loaded()
    assert sizes == sorted(sizes)
    assert sizes[-1] == 120


@pytest.mark.asyncio
async def test_load_more_releases_synchronously() -> None:
    loader, store = _loader(StaticContactProvider(_raw(120)), delay_ms=60_000)
    await loader.load_all()

    assert loader.load_more() == 50
    assert len(store.visible) == 100
    assert loader.load_more() == 20
    assert len(store.visible) == 120
    assert loader.state == FULLY_LOADED
    assert loader.load_more() == 0


@pytest.mark.asyncio
async def test_concurrent_loads_are_rejected_not_queued() -> None:
    provider = GatedProvider(_raw(5))
    loader, store = _loader(provider)

    task = asyncio.create_task(loader.load_all())
    await asyncio.sleep(0)
    assert loader.in_flight
    assert await loader.load_all() is False
    assert await loader.refresh() is False
    assert loader.load_more() == 0

    provider.gate.set()
    assert await task is True
    assert provider.calls == 1
    assert len(store.visible) == 5


@pytest.mark.asyncio
async def test_close_cancels_pending_background_batches() -> None:
    loader, store = _loader(StaticContactProvider(_raw(120)))
    await loader.load_all()
    loader.close()
    await asyncio.sleep(0.05)
    assert len(store.visible) == 50
    assert loader.state == IDLE


@pytest.mark.asyncio
async def test_close_discards_result_of_in_flight_load() -> None:
    provider = GatedProvider(_raw(5))
    loader, store = _loader(provider)
    task = asyncio.create_task(loader.load_all())
    await asyncio.sleep(0)

    loader.close()
    provider.gate.set()
    assert await task is False
    assert store.visible == []


@pytest.mark.asyncio
async def test_new_load_cancels_batches_of_previous_load() -> None:
    provider = StaticContactProvider(_raw(120, prefix="old-"))
    loader, store = _loader(provider)
    await loader.load_all()

    provider.records = _raw(60, prefix="new-")
    await loader.load_all()
    await loader.wait_until_loaded()
    await asyncio.sleep(0.05)

    assert len(store.all_records) == 60
    assert all(c.id.startswith("new-") for c in store.visible)
    assert len(store.visible) == 60


@pytest.mark.asyncio
async def test_permission_denied_clears_aggregate_and_sets_error() -> None:
    provider = StaticContactProvider(_raw(5))
    loader, store = _loader(provider)
    await loader.load_all()
    assert len(store.visible) == 5

    provider.permission_granted = False
    assert await loader.refresh() is False
    assert loader.error == "Contact permissions are required."
    assert store.visible == []
    assert loader.state == FAILED
    assert loader.refreshing is False

    provider.permission_granted = True
    assert await loader.load_all() is True
    assert loader.error is None
    assert len(store.visible) == 5


@pytest.mark.asyncio
async def test_unexpected_provider_error_becomes_retrieval_failure() -> None:
    loader, store = _loader(BrokenProvider())
    assert await loader.load_all() is False
    assert loader.error == "Failed to load contacts."
    assert loader.state == FAILED
    await loader.wait_until_loaded()


@pytest.mark.asyncio
async def test_refresh_merges_instead_of_replacing() -> None:
    provider = StaticContactProvider(
        [
            {"id": "A", "name": "Alice", "modificationDate": 1_000},
            {"id": "B", "name": "Bob", "modificationDate": 1_000},
        ]
    )
    loader, store = _loader(provider)
    await loader.load_all()
    original_b = store.get("B")

    provider.records = [{"id": "A", "name": "Alice Smith", "modificationDate": 2_000}]
    assert await loader.refresh() is True

    assert [c.id for c in store.visible] == ["A", "B"]
    assert store.get("A").name == "Alice Smith"
    assert store.get("B") is original_b
    assert loader.last_sync_time is not None


@pytest.mark.asyncio
async def test_cancelled_load_does_not_block_later_loads() -> None:
    provider = GatedProvider(_raw(5))
    loader, store = _loader(provider)
    task = asyncio.create_task(loader.load_all())
    await asyncio.sleep(0)
    assert loader.in_flight

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert loader.state == IDLE
    assert not loader.in_flight
    await loader.wait_until_loaded()

    provider.gate.set()
    assert await loader.load_all() is True
    assert len(store.visible) == 5


@pytest.mark.asyncio
async def test_listener_error_during_publish_does_not_block_later_loads() -> None:
    loader, store = _loader(StaticContactProvider(_raw(5)))
    calls = []

    def flaky_listener() -> None:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("listener broke")

    store.subscribe(flaky_listener)
    with pytest.raises(RuntimeError):
        await loader.load_all()
    assert not loader.in_flight
    await loader.wait_until_loaded()

    assert await loader.load_all() is True
    assert loader.fully_loaded


@pytest.mark.asyncio
async def test_loading_more_is_set_while_listeners_run() -> None:
    loader, store = _loader(StaticContactProvider(_raw(120)), delay_ms=60_000)
    await loader.load_all()
    seen = []
    store.subscribe(lambda: seen.append(loader.loading_more))

    assert loader.load_more() == 50
    assert seen == [True]
    assert loader.loading_more is False
