"""Tests for catalog lookup scheduling."""

import asyncio

import pytest

from moodreel.client.scheduler import ResolutionScheduler, indices_to_resolve
from moodreel.client.state import SessionStore, recommendations_received
from moodreel.client.types import Recommendation, ResolutionStatus
from moodreel.models.schemas import MovieDetail


def recs(*titles: str) -> tuple[Recommendation, ...]:
    return tuple(Recommendation(title, 2000, "r") for title in titles)


class TestIndicesToResolve:
    """Tests for the tail rule."""

    @pytest.mark.parametrize(
        "length, scheduled, final, expected",
        [
            (0, set(), False, []),
            (1, set(), False, []),
            (2, set(), False, [0]),
            (3, {0}, False, [1]),
            (3, {0, 1}, False, []),
            (0, set(), True, []),
            (1, set(), True, [0]),
            (3, {0}, True, [1, 2]),
            (3, {0, 1, 2}, True, []),
        ],
    )
    def test_eligible_indices(self, length, scheduled, final, expected):
        assert indices_to_resolve(length, scheduled, final) == expected


class FakeCatalog:
    """match_title stand-in whose lookups finish when the test says so."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Future] = {}
        self.active = 0
        self.peak = 0

    async def match_title(self, title: str, year: int | None) -> MovieDetail | None:
        self.calls.append(title)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            gate = self.gates.setdefault(title, asyncio.get_running_loop().create_future())
            return await gate
        finally:
            self.active -= 1

    def finish(self, title: str, result=None, error: Exception | None = None) -> None:
        gate = self.gates.setdefault(title, asyncio.get_running_loop().create_future())
        if error is not None:
            gate.set_exception(error)
        else:
            gate.set_result(result)


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestResolutionScheduler:
    """Tests for ResolutionScheduler."""

    @pytest.mark.asyncio
    async def test_growing_tail_never_resolved(self):
        store = SessionStore()
        catalog = FakeCatalog()
        scheduler = ResolutionScheduler(store, catalog.match_title)

        store.apply(recommendations_received, recs("Arrival"))
        assert scheduler.update() == []

        store.apply(recommendations_received, recs("Arrival", "Inter"))
        assert scheduler.update() == [0]

        store.apply(recommendations_received, recs("Arrival", "Interstellar"))
        assert scheduler.update() == []

        await settle()
        assert catalog.calls == ["Arrival"]

        assert scheduler.update(final=True) == [1]
        await settle()
        assert catalog.calls == ["Arrival", "Interstellar"]
        scheduler.cancel()

    @pytest.mark.asyncio
    async def test_each_index_scheduled_once(self):
        store = SessionStore()
        catalog = FakeCatalog()
        scheduler = ResolutionScheduler(store, catalog.match_title)

        store.apply(recommendations_received, recs("A", "B", "C"))
        scheduler.update()
        scheduler.update()
        scheduler.update(final=True)
        scheduler.update(final=True)
        await settle()

        assert sorted(catalog.calls) == ["A", "B", "C"]
        assert set(store.state.resolutions) == {0, 1, 2}
        scheduler.cancel()

    @pytest.mark.asyncio
    async def test_out_of_order_completion(self):
        store = SessionStore()
        catalog = FakeCatalog()
        scheduler = ResolutionScheduler(store, catalog.match_title)

        store.apply(recommendations_received, recs("A", "B", "C"))
        scheduler.update(final=True)
        await settle()

        catalog.finish("C", MovieDetail(title="C", year=2000))
        await settle()
        resolutions = store.state.resolutions
        assert resolutions[2].status is ResolutionStatus.RESOLVED
        assert resolutions[0].status is ResolutionStatus.PENDING
        assert resolutions[1].status is ResolutionStatus.PENDING

        catalog.finish("A", None)
        catalog.finish("B", error=RuntimeError("catalog down"))
        await scheduler.drain()

        resolutions = store.state.resolutions
        assert resolutions[0].status is ResolutionStatus.FAILED
        assert resolutions[1].status is ResolutionStatus.FAILED
        assert resolutions[2].detail.title == "C"
        assert scheduler.outstanding == 0

    @pytest.mark.asyncio
    async def test_semaphore_bounds_in_flight_lookups(self):
        store = SessionStore()
        catalog = FakeCatalog()
        scheduler = ResolutionScheduler(store, catalog.match_title, max_concurrent=2)

        store.apply(recommendations_received, recs("A", "B", "C", "D"))
        scheduler.update(final=True)
        await settle()

        assert catalog.active == 2
        assert all(store.state.resolutions[i].status is ResolutionStatus.PENDING for i in range(4))

        for title in "ABCD":
            catalog.finish(title, None)
            await settle()
        await scheduler.drain()

        assert catalog.peak == 2
        assert sorted(catalog.calls) == ["A", "B", "C", "D"]

    @pytest.mark.asyncio
    async def test_cancel_leaves_pending(self):
        store = SessionStore()
        catalog = FakeCatalog()
        scheduler = ResolutionScheduler(store, catalog.match_title)

        store.apply(recommendations_received, recs("A", "B"))
        scheduler.update(final=True)
        await settle()
        scheduler.cancel()
        await scheduler.drain()

        assert all(r.status is ResolutionStatus.PENDING for r in store.state.resolutions.values())
