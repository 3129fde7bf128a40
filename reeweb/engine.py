"""Middleware chain, route groups and the HTTP/1 server engine."""

from __future__ import annotations

import asyncio
import dataclasses
import ipaddress
import sys
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from contextlib import suppress
from dataclasses import dataclass
from http import HTTPStatus
from urllib.parse import urlsplit

from .context import Request, RequestCtx
from .router import Handler, Response, Router


class Middleware(ABC):
    """A step wrapped around route handling; it calls ``next.run`` to go on."""

    @abstractmethod
    async def handle(self, ctx: RequestCtx, next: Next) -> Response:
        """Process ``ctx``, usually by awaiting ``next.run(ctx)``."""


@dataclass(frozen=True)
class Next:
    """The rest of a middleware chain, ending in an endpoint handler."""

    endpoint: Handler
    middlewares: Sequence[Middleware] = ()

    async def run(self, ctx: RequestCtx) -> Response:
        """Run the next middleware, or the endpoint once none are left."""
        if self.middlewares:
            current, *rest = self.middlewares
            return await current.handle(ctx, Next(self.endpoint, tuple(rest)))
        return await self.endpoint(ctx)


class RouterGroup:
    """Routes sharing a path prefix and their own middlewares."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.router = Router()
        self.middlewares: list[Middleware] = []

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        """Register ``handler`` for ``method`` at the prefix followed by ``pattern``."""
        self.router.add_route(method, f"{self.prefix}{pattern}", handler)

    def get(self, path: str, handler: Handler) -> None:
        """Register a GET route."""
        self.add_route("GET", path, handler)

    def use_middleware(self, middleware: Middleware) -> None:
        """Append a middleware run for every request in this group."""
        self.middlewares.append(middleware)

    async def handle_request(self, ctx: RequestCtx) -> Response:
        """Route ``ctx`` through this group's routes."""
        return await self.router.handle_request(ctx)


class AccessLog(Middleware):
    """Prints method, path, status and elapsed milliseconds for each request."""

    async def handle(self, ctx: RequestCtx, next: Next) -> Response:
        start = time.perf_counter()
        method = ctx.request.method
        path = ctx.request.path
        response = await next.run(ctx)
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        print(f'{method} "{path}" {int(response.status)}  {elapsed_ms}ms')
        return response


class _BadRequest(Exception):
    """The bytes on the connection are not a valid HTTP/1 request."""


def _parse_socket_addr(addr: str) -> tuple[str, int]:
    host, sep, port_text = addr.rpartition(":")
    if not sep or not port_text.isdigit() or int(port_text) > 0xFFFF:
        raise ValueError(f"invalid socket address: {addr!r}")
    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        raise ValueError(f"invalid socket address: {addr!r}") from None
    if isinstance(ip, ipaddress.IPv6Address) != bracketed:
        raise ValueError(f"invalid socket address: {addr!r}")
    return str(ip), int(port_text)


def _request_path(target: str) -> str:
    if target.startswith("/"):
        return target.split("?", 1)[0].split("#", 1)[0]
    return urlsplit(target).path or "/"


async def _read_line(reader: asyncio.StreamReader) -> bytes:
    try:
        return await reader.readline()
    except (ValueError, asyncio.LimitOverrunError):
        raise _BadRequest from None


async def _read_chunked(reader: asyncio.StreamReader) -> bytes:
    chunks: list[bytes] = []
    while True:
        size_line = await _read_line(reader)
        try:
            size = int(size_line.split(b";", 1)[0].strip(), 16)
        except ValueError:
            raise _BadRequest from None
        if size == 0:
            while await _read_line(reader) not in (b"\r\n", b"\n", b""):
                pass
            return b"".join(chunks)
        chunks.append(await reader.readexactly(size))
        await _read_line(reader)


async def _read_request(reader: asyncio.StreamReader) -> tuple[Request, bool] | None:
    """Read one request; returns it with its keep-alive flag, or None at end of stream."""
    line = await _read_line(reader)
    while line in (b"\r\n", b"\n"):
        line = await _read_line(reader)
    if not line:
        return None
    try:
        method, target, version = line.decode("latin-1").split()
    except ValueError:
        raise _BadRequest from None
    if not version.startswith("HTTP/1."):
        raise _BadRequest

    headers: dict[str, str] = {}
    while True:
        raw = await _read_line(reader)
        if not raw:
            raise _BadRequest
        if raw in (b"\r\n", b"\n"):
            break
        name, sep, value = raw.decode("latin-1").partition(":")
        if not sep or not name.strip():
            raise _BadRequest
        headers[name.strip().lower()] = value.strip()

    if "chunked" in headers.get("transfer-encoding", "").lower():
        body = await _read_chunked(reader)
    elif "content-length" in headers:
        try:
            length = int(headers["content-length"])
        except ValueError:
            raise _BadRequest from None
        if length < 0:
            raise _BadRequest
        body = await reader.readexactly(length)
    else:
        body = b""

    connection = headers.get("connection", "").lower()
    if version == "HTTP/1.0":
        keep_alive = "keep-alive" in connection
    else:
        keep_alive = "close" not in connection
    request = Request(method=method, path=_request_path(target), headers=headers, body=body)
    return request, keep_alive


class Engine:
    """The application: global routes, route groups and global middlewares."""

    def __init__(self) -> None:
        self.router = Router()
        self.groups: dict[str, RouterGroup] = {}
        self.middlewares: list[Middleware] = []

    def use_middleware(self, middleware: Middleware) -> None:
        """Append a middleware run for every request."""
        self.middlewares.append(middleware)

    def group(self, prefix: str) -> RouterGroup:
        """Create a route group for ``prefix``, replacing any earlier one."""
        group = RouterGroup(prefix)
        self.groups[prefix] = group
        return group

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        """Register a route outside any group."""
        self.router.add_route(method, pattern, handler)

    def get(self, path: str, handler: Handler) -> None:
        """Register a GET route outside any group."""
        self.add_route("GET", path, handler)

    async def dispatch(self, request: Request) -> Response:
        """Answer ``request`` through the matching group or the global routes."""
        ctx = RequestCtx(request=request)
        group = next(
            (g for g in self.groups.values() if request.path.startswith(g.prefix)),
            None,
        )
        if group is not None:
            chain = Next(group.handle_request, (*group.middlewares, *self.middlewares))
        else:
            chain = Next(self.router.handle_request, tuple(self.middlewares))
        return await chain.run(ctx)

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            while True:
                try:
                    received = await _read_request(reader)
                except _BadRequest:
                    writer.write(
                        Response(HTTPStatus.BAD_REQUEST, {"Connection": "close"}).encode()
                    )
                    await writer.drain()
                    break
                if received is None:
                    break
                request, keep_alive = received
                response = await self.dispatch(request)
                if not keep_alive:
                    response = dataclasses.replace(
                        response, headers={**response.headers, "Connection": "close"}
                    )
                writer.write(response.encode())
                await writer.drain()
                if not keep_alive:
                    break
        except (ConnectionError, asyncio.IncompleteReadError) as err:
            print(f"Error handling connection: {err!r}", file=sys.stderr)
        finally:
            writer.close()
            with suppress(ConnectionError):
                await writer.wait_closed()

    async def _start_server(self, addr: str) -> asyncio.Server:
        host, port = _parse_socket_addr(addr)
        return await asyncio.start_server(self._handle_connection, host, port)

    async def run(self, addr: str) -> None:
        """Serve HTTP/1 on ``addr`` ("ip:port") until cancelled."""
        server = await self._start_server(addr)
        async with server:
            await server.serve_forever()