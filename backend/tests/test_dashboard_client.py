"""
Ember Ascent - Dashboard Client Tests
"""
import asyncio
import uuid

import httpx
import pytest

from ember_ascent.client import DashboardClient, DashboardLoader, SliceStatus

CHILD_ID = uuid.uuid4()

PAYLOADS = {
    "/api/analytics/comprehensive": {
        "success": True,
        "data": {
            "summary": {"totalQuestionsAnswered": 40, "overallAccuracy": 72.5, "currentStreak": 3},
            "subjectBreakdown": [{"subject": "mathematics", "accuracy": 72.5, "totalQuestions": 40}],
        },
    },
    "/api/analytics/readiness": {
        "success": True,
        "data": {"overallScore": 68, "overallTier": "developing", "totalQuestions": 40},
    },
    "/api/analytics/heatmap": {
        "success": True,
        "data": {"subjects": ["mathematics"], "cells": [{"topic": "Fractions", "accuracy": 42}]},
    },
    "/api/analytics/benchmark": {
        "success": True,
        "data": {"overallPercentile": 81},
    },
    "/api/analytics/learning-health": {
        "success": True,
        "data": {"rushFactor": 12.5, "stagnantTopics": 1},
        "meta": {"daysAnalyzed": 30},
    },
}


def _handler(overrides: dict | None = None, seen: list | None = None):
    overrides = overrides or {}

    def handle(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        override = overrides.get(request.url.path)
        if isinstance(override, Exception):
            raise override
        if override is not None:
            return override
        return httpx.Response(200, json=PAYLOADS[request.url.path])

    return handle


def _client(handler) -> DashboardClient:
    return DashboardClient(
        "http://test/api",
        access_token="token",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_fetch_dashboard_all_slices_ready():
    seen: list[httpx.Request] = []
    async with _client(_handler(seen=seen)) as client:
        view = await client.fetch_dashboard(CHILD_ID, date_range="last_7_days", days=14)

    assert view.child_id == CHILD_ID
    assert view.comprehensive.is_ready
    assert view.comprehensive.data.summary.overall_accuracy == 72.5
    assert view.comprehensive.data.subject_breakdown[0].subject == "mathematics"
    assert view.readiness.data.overall_score == 68
    assert view.heatmap.data.cells[0].topic == "Fractions"
    assert view.benchmark.data.overall_percentile == 81
    assert view.learning_health.data.rush_factor == 12.5

    by_path = {r.url.path: r for r in seen}
    assert by_path["/api/analytics/comprehensive"].url.params["range"] == "last_7_days"
    assert "days" not in by_path["/api/analytics/comprehensive"].url.params
    assert by_path["/api/analytics/readiness"].url.params["days"] == "14"
    assert set(by_path["/api/analytics/benchmark"].url.params) == {"childId"}
    assert all(r.headers["Authorization"] == "Bearer token" for r in seen)


@pytest.mark.asyncio
async def test_one_failing_slice_does_not_block_the_rest():
    handler = _handler({
        "/api/analytics/heatmap": httpx.ConnectError("connection refused"),
        "/api/analytics/readiness": httpx.Response(
            500, json={"success": False, "error": "Something went wrong. Please try again."}
        ),
    })
    async with _client(handler) as client:
        view = await client.fetch_dashboard(CHILD_ID)

    assert view.heatmap.status == SliceStatus.UNAVAILABLE
    assert "connection refused" in view.heatmap.error
    assert view.readiness.status == SliceStatus.UNAVAILABLE
    assert view.readiness.error == "Something went wrong. Please try again."
    assert view.comprehensive.is_ready
    assert view.benchmark.is_ready
    assert view.learning_health.is_ready


@pytest.mark.asyncio
async def test_tier_gated_slices_are_locked():
    handler = _handler({
        "/api/analytics/benchmark": httpx.Response(
            403, json={"success": False, "error": "Benchmarking requires a Summit subscription"}
        ),
        "/api/analytics/readiness": httpx.Response(
            200, json={"success": True, "data": None, "preview": True, "message": "Upgrade"}
        ),
    })
    async with _client(handler) as client:
        view = await client.fetch_dashboard(CHILD_ID)

    assert view.benchmark.status == SliceStatus.LOCKED
    assert view.benchmark.error == "Benchmarking requires a Summit subscription"
    assert view.readiness.status == SliceStatus.LOCKED
    assert view.readiness.data is None
    assert view.heatmap.is_ready


@pytest.mark.asyncio
async def test_malformed_payload_is_unavailable():
    handler = _handler({
        "/api/analytics/benchmark": httpx.Response(200, text="<html>oops</html>"),
        "/api/analytics/heatmap": httpx.Response(
            200, json={"success": True, "data": {"cells": "not-a-list"}}
        ),
    })
    async with _client(handler) as client:
        view = await client.fetch_dashboard(CHILD_ID)

    assert view.benchmark.status == SliceStatus.UNAVAILABLE
    assert view.heatmap.status == SliceStatus.UNAVAILABLE
    assert view.comprehensive.is_ready


class _GatedTransport(httpx.AsyncBaseTransport):
    """Holds every request until ``release`` is set."""

    def __init__(self):
        self.release = asyncio.Event()
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        await self.release.wait()
        return httpx.Response(200, json=PAYLOADS[request.url.path])


@pytest.mark.asyncio
async def test_loader_publishes_view():
    updates = []
    loader = DashboardLoader(_client(_handler()), on_update=updates.append)

    view = await loader.load(CHILD_ID)

    assert view is not None
    assert loader.view is view
    assert updates == [view]
    assert not loader.in_flight
    await loader.aclose()


@pytest.mark.asyncio
async def test_loader_new_params_cancel_in_flight_cycle():
    transport = _GatedTransport()
    client = DashboardClient("http://test/api", "token", transport=transport)
    updates = []
    loader = DashboardLoader(client, on_update=updates.append)

    first = asyncio.create_task(loader.load(CHILD_ID, days=30))
    await asyncio.sleep(0)
    while len(transport.requests) < 5:
        await asyncio.sleep(0)

    second = asyncio.create_task(loader.load(CHILD_ID, days=7))
    await asyncio.sleep(0)
    transport.release.set()

    assert await first is None
    view = await second
    assert view is not None
    assert view.days == 7
    assert [u.days for u in updates] == [7]
    await loader.aclose()


@pytest.mark.asyncio
async def test_loader_same_params_join_in_flight_cycle():
    transport = _GatedTransport()
    client = DashboardClient("http://test/api", "token", transport=transport)
    updates = []
    loader = DashboardLoader(client, on_update=updates.append)

    first = asyncio.create_task(loader.load(CHILD_ID))
    second = asyncio.create_task(loader.load(CHILD_ID))
    await asyncio.sleep(0)
    transport.release.set()

    a, b = await asyncio.gather(first, second)
    assert a is b
    assert len(transport.requests) == 5
    assert updates == [a]
    assert a.loaded_at.tzinfo is not None
    await loader.aclose()


@pytest.mark.asyncio
async def test_loader_close_cancels_and_never_publishes():
    transport = _GatedTransport()
    client = DashboardClient("http://test/api", "token", transport=transport)
    updates = []
    loader = DashboardLoader(client, on_update=updates.append)

    pending = asyncio.create_task(loader.load(CHILD_ID))
    while len(transport.requests) < 5:
        await asyncio.sleep(0)

    await loader.aclose()

    assert await pending is None
    assert updates == []
    assert loader.view is None
    with pytest.raises(RuntimeError):
        await loader.load(CHILD_ID)
