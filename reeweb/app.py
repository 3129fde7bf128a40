"""The demo application and its command-line entry point."""

from __future__ import annotations

import argparse
import asyncio

from .context import RequestCtx
from .engine import AccessLog, Engine
from .router import Response

DEFAULT_ADDR = "127.0.0.1:3000"


async def hello(ctx: RequestCtx) -> Response:
    """Answer with a fixed greeting."""
    return Response.with_text("hello")


async def hello2(ctx: RequestCtx) -> Response:
    """Answer with a second fixed greeting."""
    return Response.with_text("hello2")


async def hello_name(ctx: RequestCtx) -> Response:
    """Greet the ``name`` path parameter."""
    return Response.with_text(f"hello {ctx.params['name']}")


async def hello_path(ctx: RequestCtx) -> Response:
    """Greet the ``filepath`` path parameter."""
    return Response.with_text(f"hello {ctx.params['filepath']}")


def build_engine() -> Engine:
    """Create the engine with the demo routes and the logged ``/api`` group."""
    engine = Engine()
    engine.get("/", hello)
    engine.get("/hello", hello2)
    engine.get("/hello/:name", hello_name)
    engine.get("/assets/*filepath", hello_path)

    api = engine.group("/api")
    api.use_middleware(AccessLog())
    api.get("/hello", hello)
    return engine


def main(argv: list[str] | None = None) -> int:
    """Serve the demo application until interrupted."""
    parser = argparse.ArgumentParser(prog="reeweb", description="Run the demo web server.")
    parser.add_argument(
        "addr", nargs="?", default=DEFAULT_ADDR, help=f"ip:port to listen on (default {DEFAULT_ADDR})"
    )
    args = parser.parse_args(argv)
    try:
        asyncio.run(build_engine().run(args.addr))
    except ValueError as err:
        parser.error(str(err))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())