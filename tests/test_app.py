"""Tests for the Billfold front door."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from billfold import Billfold, JSONResponse, Request, Response, __version__
from billfold.errors import NotFoundError, ReadOnlyError, ValidationError


def test_version() -> None:
    assert __version__ is not None
    assert isinstance(__version__, str)


def _make_client(app: Billfold) -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    )


# =====================================================================
# Dispatch
# =====================================================================


@pytest.mark.asyncio
async def test_simple_get() -> None:
    app = Billfold()

    @app.get("/hello")
    async def hello(request: Request) -> JSONResponse:
        return JSONResponse({"msg": "hi"})

    async with _make_client(app) as client:
        resp = await client.get("/hello")
        assert resp.status_code == 200
        assert resp.json() == {"msg": "hi"}
        assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_positional_route_handler_reads_raw_path() -> None:
    app = Billfold()

    @app.post("/api/months/bills/reset", has_path_param=True)
    async def reset(request: Request) -> JSONResponse:
        segments = request.segments
        return JSONResponse({"month": segments[2], "id": segments[4], "params": request.path_params})

    async with _make_client(app) as client:
        resp = await client.post("/api/months/2025-01/bills/abc/reset")
        assert resp.status_code == 200
        assert resp.json() == {"month": "2025-01", "id": "abc", "params": {}}


@pytest.mark.asyncio
async def test_template_route_passes_params() -> None:
    app = Billfold()

    @app.get("/api/months/{month:month}/summary")
    async def summary(request: Request, month: str) -> JSONResponse:
        return JSONResponse({"month": month})

    async with _make_client(app) as client:
        resp = await client.get("/api/months/2025-03/summary")
        assert resp.json() == {"month": "2025-03"}


@pytest.mark.asyncio
async def test_exact_route_beats_parameterized_twin() -> None:
    app = Billfold()

    @app.get("/api/months", has_path_param=True)
    async def one_month(request: Request) -> dict:
        return {"handler": "single"}

    @app.get("/api/months")
    async def all_months(request: Request) -> dict:
        return {"handler": "list"}

    async with _make_client(app) as client:
        assert (await client.get("/api/months")).json() == {"handler": "list"}
        assert (await client.get("/api/months/2025-01")).json() == {"handler": "single"}


@pytest.mark.asyncio
async def test_method_mismatch_is_404() -> None:
    app = Billfold()

    @app.post("/api/bills")
    async def create(request: Request) -> dict:
        return {}

    async with _make_client(app) as client:
        resp = await client.get("/api/bills")
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_404() -> None:
    app = Billfold()

    async with _make_client(app) as client:
        resp = await client.get("/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found"}
        assert resp.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"


@pytest.mark.asyncio
async def test_options_preflight() -> None:
    app = Billfold()

    async with _make_client(app) as client:
        resp = await client.options("/api/anything")
        assert resp.status_code == 204
        assert resp.content == b""
        assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"


# =====================================================================
# Errors
# =====================================================================


@pytest.mark.asyncio
async def test_500_on_handler_error() -> None:
    app = Billfold()

    @app.get("/boom")
    async def boom(request: Request) -> Response:
        raise RuntimeError("kaboom")

    async with _make_client(app) as client:
        resp = await client.get("/boom")
        assert resp.status_code == 500
        assert resp.json() == {"error": "kaboom"}
        assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_debug_includes_traceback() -> None:
    app = Billfold(debug=True)

    @app.get("/boom")
    async def boom(request: Request) -> Response:
        raise RuntimeError("kaboom")

    async with _make_client(app) as client:
        body = (await client.get("/boom")).json()
        assert "RuntimeError: kaboom" in body["traceback"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ValidationError("bad amount", field="amount"), 400),
        (NotFoundError("Bill", "b1"), 404),
        (ReadOnlyError("2025-01"), 423),
    ],
)
async def test_error_status_is_carried(exc: Exception, status: int) -> None:
    app = Billfold()

    @app.get("/fail")
    async def fail(request: Request) -> Response:
        raise exc

    async with _make_client(app) as client:
        resp = await client.get("/fail")
        assert resp.status_code == status
        assert resp.json() == {"error": str(exc)}


@pytest.mark.asyncio
async def test_invalid_json_body_is_400() -> None:
    app = Billfold()

    @app.post("/echo")
    async def echo(request: Request) -> JSONResponse:
        return JSONResponse(await request.json())

    async with _make_client(app) as client:
        resp = await client.post("/echo", content=b"{not json")
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid JSON body")


@pytest.mark.asyncio
async def test_non_utf8_body_is_400() -> None:
    app = Billfold()

    @app.post("/echo")
    async def echo(request: Request) -> JSONResponse:
        return JSONResponse(await request.json())

    async with _make_client(app) as client:
        resp = await client.post("/echo", content=b'{"name": "\xff"}')
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid JSON body")


# =====================================================================
# Return values
# =====================================================================


@pytest.mark.asyncio
async def test_sync_handler() -> None:
    app = Billfold()

    @app.get("/sync")
    def sync_handler(request: Request) -> JSONResponse:
        return JSONResponse({"sync": True})

    async with _make_client(app) as client:
        resp = await client.get("/sync")
        assert resp.status_code == 200
        assert resp.json() == {"sync": True}


@pytest.mark.asyncio
async def test_pydantic_model_return_auto_json() -> None:
    class Item(BaseModel):
        name: str
        price: int

    app = Billfold()

    @app.get("/item")
    async def get_item(request: Request) -> Item:
        return Item(name="Rent", price=120000)

    async with _make_client(app) as client:
        resp = await client.get("/item")
        assert resp.headers["content-type"] == "application/json"
        assert resp.json() == {"name": "Rent", "price": 120000}


@pytest.mark.asyncio
async def test_none_return_is_204() -> None:
    app = Billfold()

    @app.delete("/thing", has_path_param=True)
    async def remove(request: Request) -> None:
        return None

    async with _make_client(app) as client:
        resp = await client.delete("/thing/1")
        assert resp.status_code == 204
        assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_post_with_body() -> None:
    app = Billfold()

    @app.post("/echo")
    async def echo(request: Request) -> JSONResponse:
        return JSONResponse(await request.json(), status_code=201)

    async with _make_client(app) as client:
        resp = await client.post("/echo", json={"key": "value"})
        assert resp.status_code == 201
        assert resp.json() == {"key": "value"}


# =====================================================================
# Middleware and lifecycle
# =====================================================================


@pytest.mark.asyncio
async def test_middleware() -> None:
    app = Billfold()

    @app.get("/mw")
    async def handler(request: Request) -> JSONResponse:
        return JSONResponse({"ok": True})

    def add_header_middleware(inner_app):
        async def middleware(scope, receive, send):
            async def custom_send(message):
                if message["type"] == "http.response.start":
                    headers = list(message.get("headers", []))
                    headers.append((b"x-custom", b"yes"))
                    message = {**message, "headers": headers}
                await send(message)

            await inner_app(scope, receive, custom_send)

        return middleware

    app.add_middleware(add_header_middleware)

    async with _make_client(app) as client:
        resp = await client.get("/mw")
        assert resp.status_code == 200
        assert resp.headers["x-custom"] == "yes"


def test_registration_after_first_request_raises() -> None:
    app = Billfold()
    app.add_route("/a", "GET", lambda request: {})
    assert len(app.routes) == 1

    with pytest.raises(RuntimeError, match="already frozen"):
        app.add_route("/b", "GET", lambda request: {})


@pytest.mark.asyncio
async def test_lifespan_runs_startup_hooks() -> None:
    app = Billfold()
    calls: list[str] = []

    @app.on_startup
    async def started() -> None:
        calls.append("started")

    messages = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
    sent: list[dict] = []

    async def receive() -> dict:
        return next(messages)

    async def send(message: dict) -> None:
        sent.append(message)

    await app({"type": "lifespan"}, receive, send)
    assert calls == ["started"]
    assert [m["type"] for m in sent] == ["lifespan.startup.complete", "lifespan.shutdown.complete"]
