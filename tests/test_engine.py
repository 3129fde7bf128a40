import asyncio
import re

import pytest

from reeweb.context import Request, RequestCtx
from reeweb.engine import AccessLog, Engine, Middleware, Next, RouterGroup
from reeweb.router import Response


async def _echo_path(ctx: RequestCtx) -> Response:
    return Response.with_text(ctx.request.path)


async def _greet(ctx: RequestCtx) -> Response:
    return Response.with_text(f"hello {ctx.params['name']}")


class Recorder(Middleware):
    def __init__(self, name, log):
        self.name = name
        self.log = log

    async def handle(self, ctx, next):
        self.log.append(self.name)
        return await next.run(ctx)


class Blocker(Middleware):
    async def handle(self, ctx, next):
        return Response.with_text("blocked")


@pytest.mark.asyncio
async def test_next_without_middlewares_calls_endpoint():
    chain = Next(_echo_path)
    response = await chain.run(RequestCtx(Request("GET", "/x")))
    assert response.body == b"/x"


@pytest.mark.asyncio
async def test_next_runs_middlewares_in_order():
    log = []
    chain = Next(_echo_path, (Recorder("a", log), Recorder("b", log)))
    await chain.run(RequestCtx(Request("GET", "/x")))
    assert log == ["a", "b"]


@pytest.mark.asyncio
async def test_middleware_can_short_circuit():
    chain = Next(_echo_path, (Blocker(),))
    response = await chain.run(RequestCtx(Request("GET", "/x")))
    assert response.body == b"blocked"


@pytest.mark.asyncio
async def test_router_group_prefixes_patterns():
    group = RouterGroup("/api")
    group.get("/hello/:name", _greet)
    response = await group.handle_request(RequestCtx(Request("GET", "/api/hello/ree")))
    assert response.body == b"hello ree"
    assert "GET-/api/hello/:name" in group.router.handlers


@pytest.mark.asyncio
async def test_dispatch_global_route_with_params():
    engine = Engine()
    engine.get("/hello/:name", _greet)
    response = await engine.dispatch(Request("GET", "/hello/world"))
    assert response.body == b"hello world"


@pytest.mark.asyncio
async def test_dispatch_unknown_route_is_not_found_text():
    engine = Engine()
    engine.get("/", _echo_path)
    response = await engine.dispatch(Request("GET", "/nothing"))
    assert response.body == b"404 Not Found"


@pytest.mark.asyncio
async def test_dispatch_group_runs_group_then_global_middlewares():
    log = []
    engine = Engine()
    engine.use_middleware(Recorder("global", log))
    api = engine.group("/api")
    api.use_middleware(Recorder("group", log))
    api.get("/echo", _echo_path)
    response = await engine.dispatch(Request("GET", "/api/echo"))
    assert response.body == b"/api/echo"
    assert log == ["group", "global"]


@pytest.mark.asyncio
async def test_group_middleware_not_used_for_global_routes():
    log = []
    engine = Engine()
    engine.get("/echo", _echo_path)
    api = engine.group("/api")
    api.use_middleware(Recorder("group", log))
    await engine.dispatch(Request("GET", "/echo"))
    assert log == []


@pytest.mark.asyncio
async def test_prefix_match_sends_request_to_group_router():
    engine = Engine()
    engine.get("/apix", _echo_path)
    engine.group("/api")
    response = await engine.dispatch(Request("GET", "/apix"))
    assert response.body == b"404 Not Found"


@pytest.mark.asyncio
async def test_group_with_same_prefix_replaces_earlier_one():
    engine = Engine()
    first = engine.group("/api")
    first.get("/echo", _echo_path)
    second = engine.group("/api")
    assert engine.groups["/api"] is second
    response = await engine.dispatch(Request("GET", "/api/echo"))
    assert response.body == b"404 Not Found"


@pytest.mark.asyncio
async def test_access_log_prints_request_line(capsys):
    engine = Engine()
    engine.use_middleware(AccessLog())
    engine.get("/echo", _echo_path)
    response = await engine.dispatch(Request("GET", "/echo"))
    assert response.body == b"/echo"
    out = capsys.readouterr().out
    assert re.fullmatch(r'GET "/echo" 200  \d+ms\n', out)


@pytest.mark.asyncio
@pytest.mark.parametrize("addr", ["nonsense", "127.0.0.1", "localhost:80", "::1:80", "1.2.3.4:99999"])
async def test_run_rejects_invalid_address(addr):
    with pytest.raises(ValueError):
        await Engine().run(addr)


async def _exchange(engine, payload):
    server = await engine._start_server("127.0.0.1:0")
    port = server.sockets[0].getsockname()[1]
    try:
        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        writer.write(payload)
        await writer.drain()
        data = await asyncio.wait_for(reader.read(), timeout=5)
        writer.close()
        await writer.wait_closed()
        return data
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_server_answers_over_tcp():
    engine = Engine()
    engine.get("/hello/:name", _greet)
    data = await _exchange(
        engine, b"GET /hello/world?q=1 HTTP/1.1\r\nHost: x\r\nConnection: close\r\n\r\n"
    )
    assert data.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"Content-Type: text/plain\r\n" in data
    assert data.endswith(b"\r\n\r\nhello world")


@pytest.mark.asyncio
async def test_server_keeps_connection_alive_between_requests():
    engine = Engine()
    engine.get("/echo", _echo_path)
    data = await _exchange(
        engine,
        b"GET /echo HTTP/1.1\r\nHost: x\r\n\r\n"
        b"POST /echo HTTP/1.1\r\nHost: x\r\nContent-Length: 3\r\nConnection: close\r\n\r\nabc",
    )
    assert data.count(b"HTTP/1.1 200 OK") == 2
    assert data.endswith(b"404 Not Found")


@pytest.mark.asyncio
async def test_server_rejects_malformed_request():
    engine = Engine()
    data = await _exchange(engine, b"garbage\r\n\r\n")
    assert data.startswith(b"HTTP/1.1 400 Bad Request")