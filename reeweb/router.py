"""Responses, pattern parsing and the per-method route table."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from http import HTTPStatus

from .context import RequestCtx
from .trie import Node

NOT_FOUND_TEXT = "404 Not Found"


@dataclass
class Response:
    """An HTTP response with a status, headers and a body."""

    status: int = HTTPStatus.OK
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def with_text(cls, chunk: str | bytes) -> Response:
        """A 200 response with a plain-text body."""
        body = chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
        return cls(HTTPStatus.OK, {"Content-Type": "text/plain"}, body)

    @classmethod
    def empty(cls) -> Response:
        """A 200 response with no body."""
        return cls(HTTPStatus.OK)

    def encode(self) -> bytes:
        """Serialise the response as HTTP/1.1 bytes."""
        try:
            reason = HTTPStatus(self.status).phrase
        except ValueError:
            reason = ""
        headers = dict(self.headers)
        if not any(name.lower() == "content-length" for name in headers):
            headers["Content-Length"] = str(len(self.body))
        lines = [f"HTTP/1.1 {int(self.status)} {reason}".rstrip()]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("latin-1") + self.body


Handler = Callable[[RequestCtx], Awaitable[Response]]


def parse_pattern(pattern: str) -> list[str]:
    """Split a path into non-empty segments, stopping after the first ``*`` segment."""
    parts: list[str] = []
    for item in pattern.split("/"):
        if item:
            parts.append(item)
            if item.startswith("*"):
                break
    return parts


class Router:
    """Maps method and path to handlers through one route tree per method."""

    def __init__(self) -> None:
        self.roots: dict[str, Node] = {}
        self.handlers: dict[str, Handler] = {}

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        """Register ``handler`` for ``method`` requests matching ``pattern``."""
        parts = parse_pattern(pattern)
        self.roots.setdefault(method, Node()).insert(pattern, parts, 0)
        self.handlers[f"{method}-{pattern}"] = handler

    def get_route(self, method: str, path: str) -> tuple[Node | None, dict[str, str]]:
        """Find the route node for ``path`` and the parameters it captures."""
        root = self.roots.get(method)
        if root is None:
            return None, {}
        search_parts = parse_pattern(path)
        node = root.search(search_parts, 0)
        if node is None:
            return None, {}

        params: dict[str, str] = {}
        for index, part in enumerate(parse_pattern(node.pattern)):
            if part.startswith(":"):
                params[part[1:]] = search_parts[index]
            elif part.startswith("*"):
                params[part[1:]] = "/".join(search_parts[index:])
                break
        return node, params

    def handle(self, key: str) -> Handler | None:
        """Return the handler registered under ``key`` ("METHOD-pattern")."""
        return self.handlers.get(key)

    async def handle_request(self, ctx: RequestCtx) -> Response:
        """Route ``ctx`` to its handler, answering unknown paths with a not-found text."""
        method = ctx.request.method
        node, params = self.get_route(method, ctx.request.path)
        if node is None:
            return Response.with_text(NOT_FOUND_TEXT)
        ctx.params = params
        handler = self.handle(f"{method}-{node.pattern}")
        if handler is None:
            return Response.with_text(NOT_FOUND_TEXT)
        return await handler(ctx)