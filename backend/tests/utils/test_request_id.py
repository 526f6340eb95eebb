import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from stays.main import app as stays_app
from stays.main import request_id_middleware
from stays.utils.request_id import bind_request_id, generate_request_id, get_request_id, set_request_id


def test_request_id_set_and_get() -> None:
    set_request_id("req-abc")
    assert get_request_id() == "req-abc"
    set_request_id(None)
    assert get_request_id() is None


def test_generate_request_id_is_unique() -> None:
    assert generate_request_id() != generate_request_id()


def test_bind_request_id_ignores_blank_header() -> None:
    bound = bind_request_id("   ")
    assert bound.strip()
    assert get_request_id() == bound
    set_request_id(None)


def _echo_app() -> FastAPI:
    app = FastAPI()

    @app.get("/check")
    async def check() -> dict[str, str]:
        return {"rid": get_request_id() or ""}

    app.middleware("http")(request_id_middleware)
    return app


@pytest.mark.asyncio
@pytest.mark.parametrize("incoming", [None, "req-custom-123"])
async def test_request_id_middleware_binds_and_echoes(incoming: str | None) -> None:
    headers = {"X-Request-ID": incoming} if incoming else {}
    transport = ASGITransport(app=_echo_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as client:
        resp = await client.get("/check")

    assert resp.status_code == 200
    rid = resp.headers["X-Request-ID"]
    assert rid
    assert resp.json()["rid"] == rid
    if incoming:
        assert rid == incoming


@pytest.mark.asyncio
async def test_health_endpoint_carries_request_id() -> None:
    transport = ASGITransport(app=stays_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-ID")


def test_bind_request_id_replaces_unsafe_header() -> None:
    bound = bind_request_id("bad id\r\nX-Evil: 1")
    assert " " not in bound
    assert len(bound) == 32
    set_request_id(None)
