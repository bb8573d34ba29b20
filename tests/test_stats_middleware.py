"""Tests for StatsMiddleware on a small Starlette app."""
import pytest
from fastapi.testclient import TestClient
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from reqstats.middleware import StatsMiddleware
from reqstats.monitoring import Collector


async def ok(request):
    return PlainTextResponse("hello")


async def created(request):
    return PlainTextResponse("made", status_code=201)


async def missing(request):
    raise HTTPException(status_code=404)


async def boom(request):
    raise RuntimeError("boom")


def _make_app(collector: Collector) -> Starlette:
    app = Starlette(
        routes=[
            Route("/ok", ok),
            Route("/created", created, methods=["POST"]),
            Route("/missing", missing),
            Route("/boom", boom),
        ]
    )
    app.add_middleware(StatsMiddleware, collector=collector)
    return app


@pytest.fixture
def app_collector():
    c = Collector()
    yield c
    c.stop()


@pytest.fixture
def client(app_collector):
    return TestClient(_make_app(app_collector), raise_server_exceptions=False)


def test_records_status_and_leaves_body_untouched(client, app_collector):
    r = client.get("/ok")
    assert r.status_code == 200
    assert r.text == "hello"
    assert r.headers["content-length"] == "5"

    r = client.post("/created")
    assert r.status_code == 201
    assert r.text == "made"

    report = app_collector.snapshot()
    assert report.total_status_code_count == {"200": 1, "201": 1}
    assert report.total_count == 2
    assert report.total_response_time_sec > 0


def test_records_http_exception_and_unrouted_paths(client, app_collector):
    assert client.get("/missing").status_code == 404
    assert client.get("/nowhere").status_code == 404
    assert app_collector.snapshot().total_status_code_count == {"404": 2}


def test_unhandled_exception_recorded_as_500(client, app_collector):
    r = client.get("/boom")
    assert r.status_code == 500
    assert app_collector.snapshot().total_status_code_count == {"500": 1}


def test_exception_propagates_to_caller(app_collector):
    strict = TestClient(_make_app(app_collector))
    with pytest.raises(RuntimeError, match="boom"):
        strict.get("/boom")
    assert app_collector.snapshot().total_status_code_count == {"500": 1}


def test_lifespan_scope_not_counted(app_collector):
    with TestClient(_make_app(app_collector)) as c:
        c.get("/ok")
    assert app_collector.snapshot().total_count == 1


# --- Collector looked up on app.state ---


def _make_state_app() -> Starlette:
    app = Starlette(routes=[Route("/ok", ok)])
    app.add_middleware(StatsMiddleware)
    return app


def test_uses_collector_from_app_state(app_collector):
    app = _make_state_app()
    app.state.stats = app_collector
    TestClient(app).get("/ok")
    assert app_collector.snapshot().total_status_code_count == {"200": 1}


def test_passes_through_without_collector():
    r = TestClient(_make_state_app()).get("/ok")
    assert r.status_code == 200
    assert r.text == "hello"
