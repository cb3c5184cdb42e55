"""Test the FastAPI endpoints."""
import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from jsonds.api.app import BAD_METHOD, _encode, create_app, decorate
from jsonds.api.schemas import Annotation
from jsonds.config import Settings
from jsonds.engine.fixtures import SEARCH_TARGETS
from jsonds.runtime.eventlog import EventStore
from jsonds.runtime.runner import seed

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
ANNOTATION = {
    "name": "deploys",
    "datasource": "jsonds",
    "iconColor": "rgba(255, 96, 96, 1)",
    "enable": True,
    "showLine": False,
    "query": "",
}


def rfc3339(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def make_client(store: EventStore | None = None, **settings) -> AsyncClient:
    app = create_app(Settings(seed_count=0, **settings), store or EventStore())
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def seeded_store() -> EventStore:
    store = EventStore()
    seed(store, 3, timedelta(minutes=20), now=NOW.timestamp())
    return store


@pytest.mark.asyncio
async def test_root_accepts_any_method():
    """Connection test endpoint answers ok for every verb."""
    async with make_client() as ac:
        for method in ("GET", "POST", "PUT", "DELETE"):
            response = await ac.request(method, "/")
            assert response.status_code == 200
            assert response.text == "ok\n"


@pytest.mark.asyncio
async def test_search_returns_fixed_targets():
    """Any valid JSON body yields the fixed 7 targets."""
    async with make_client() as ac:
        response = await ac.post("/search", json={})
        assert response.status_code == 200
        assert response.json() == SEARCH_TARGETS
        assert len(response.json()) == 7

        response = await ac.post("/search", json={"target": "app"})
        assert response.json() == SEARCH_TARGETS


@pytest.mark.asyncio
async def test_search_rejects_non_json():
    """A body that is not JSON is a 400 with the decode detail."""
    async with make_client() as ac:
        response = await ac.post("/search", content=b"not json")
    assert response.status_code == 400
    assert response.text.startswith("json decode failure:")
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.asyncio
async def test_empty_body_is_decode_failure():
    async with make_client() as ac:
        response = await ac.post("/query", content=b"")
    assert response.status_code == 400
    assert response.text.startswith("json decode failure:")


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/search", "/query", "/annotations"])
async def test_options_is_empty_ok(path):
    async with make_client() as ac:
        response = await ac.options(path)
    assert response.status_code == 200
    assert response.content == b""


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
async def test_unsupported_method(method):
    """Anything but OPTIONS/POST gets the supported-methods message."""
    async with make_client() as ac:
        response = await ac.request(method, "/query")
    assert response.status_code == 400
    assert response.text == BAD_METHOD + "\n"


@pytest.mark.asyncio
async def test_query_returns_fixture_series():
    """The query stub ignores its input and returns the `abc` series."""
    body = {
        "panelId": 1,
        "requestId": "Q100",
        "range": {"from": "2024-03-01T00:00:00Z", "to": "2024-03-01T06:00:00Z",
                  "raw": {"from": "now-6h", "to": "now"}},
        "rangeRaw": {"from": "now-6h", "to": "now"},
        "interval": "30s",
        "intervalMs": 30000,
        "targets": [{"target": "upper_50", "refId": "A", "type": "timeserie"}],
        "format": "json",
        "maxDataPoints": 550,
    }
    before = int(time.time()) * 1000
    async with make_client() as ac:
        response = await ac.post("/query", json=body)
    after = int(time.time()) * 1000

    assert response.status_code == 200
    (series,) = response.json()
    assert series["target"] == "abc"
    (v1, t1), (v2, t2) = series["datapoints"]
    assert (v1, v2) == (622, 365)
    assert before <= t1 <= after
    assert t2 - t1 == 1000 * 1000


@pytest.mark.asyncio
async def test_annotations_in_range():
    """Events strictly inside the range come back decorated with the annotation."""
    body = {
        "range": {
            "from": rfc3339(NOW - timedelta(minutes=50)),
            "to": rfc3339(NOW - timedelta(minutes=10)),
            "raw": {"from": "now-50m", "to": "now-10m"},
        },
        "annotation": ANNOTATION,
    }
    async with make_client(seeded_store()) as ac:
        response = await ac.post("/annotations", json=body)

    assert response.status_code == 200
    data = response.json()
    assert [d["title"] for d in data] == ["event 0000", "event 0001"]
    now_ms = int(NOW.timestamp() * 1000)
    assert [d["time"] for d in data] == [now_ms - 40 * 60_000, now_ms - 20 * 60_000]
    for d in data:
        assert d["annotation"] == {**ANNOTATION, "showLine": True}
        assert d["tags"] == "atag btag ctag"
        assert d["text"].startswith("text about the event")


@pytest.mark.asyncio
async def test_annotations_empty_range():
    """A range with no events is an empty array, not an error."""
    body = {
        "range": {"from": "2001-01-01T00:00:00Z", "to": "2001-01-02T00:00:00Z"},
        "annotation": ANNOTATION,
    }
    async with make_client(seeded_store()) as ac:
        response = await ac.post("/annotations", json=body)
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_annotations_reject_naive_timestamps():
    """Range bounds must carry an offset."""
    body = {"range": {"from": "2024-03-01T00:00:00", "to": "2024-03-02T00:00:00"}}
    async with make_client(seeded_store()) as ac:
        response = await ac.post("/annotations", json=body)
    assert response.status_code == 400


def test_decorate_forces_show_line():
    """showLine is true on every decorated event whatever the caller sent."""
    store = seeded_store()
    for show in (True, False):
        out = decorate(store.snapshot(), Annotation(name="x", show_line=show))
        assert len(out) == 3
        assert all(a.annotation.show_line for a in out)


@pytest.mark.asyncio
async def test_request_deadline():
    """A handler slower than the deadline yields 504."""
    app = create_app(Settings(seed_count=0, request_timeout_s=0.05), EventStore())

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(1)
        return {"late": True}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/slow", headers={"Origin": "http://grafana.local:3000"})
    assert response.status_code == 504
    assert response.text == "request deadline exceeded\n"
    assert "access-control-allow-origin" in response.headers


def test_echo_without_upgrade_is_bad_request():
    client = TestClient(create_app(Settings(seed_count=0), EventStore()))
    response = client.get("/echo")
    assert response.status_code == 400


def test_lifespan_seeds_and_runs_generator():
    """Seeding finishes before the first request and the generator stops on shutdown."""
    store = EventStore()
    app = create_app(Settings(seed_count=5, generate_period_s=3600), store)
    with TestClient(app) as client:
        assert len(store) == 5
        assert app.state.generator.running
        response = client.post("/annotations", json={
            "range": {"from": "2000-01-01T00:00:00Z", "to": "2100-01-01T00:00:00Z"},
            "annotation": ANNOTATION,
        })
        assert len(response.json()) == 5
    assert not app.state.generator.running


def test_encode_failure_is_logged_and_empty(caplog):
    """A payload that cannot be serialized yields an empty 200 and a logged traceback."""
    with caplog.at_level(logging.ERROR, logger="jsonds.api.app"):
        response = _encode({"x": object()})
    assert response.status_code == 200
    assert response.body == b""
    records = [r for r in caplog.records if r.getMessage() == "json enc"]
    assert len(records) == 1
    assert records[0].exc_info is not None
