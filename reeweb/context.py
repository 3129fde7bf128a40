"""Request data handed to route handlers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Request:
    """An incoming HTTP request, reduced to what routing and handlers need."""

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


@dataclass
class RequestCtx:
    """A request together with the path parameters captured by the router."""

    request: Request
    params: dict[str, str] = field(default_factory=dict)

    def get_param(self, key: str) -> str | None:
        """Return the captured path parameter ``key``, or None if absent."""
        return self.params.get(key)