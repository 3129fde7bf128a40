# reeweb

A small asyncio web framework for HTTP/1.1 that uses only the standard
library. It provides:

- trie-based routing with static segments, `:name` parameters and a
  trailing `*name` catch-all
- route groups that share a path prefix and have their own middleware
- middleware chains, including a built-in `AccessLog`
- a minimal HTTP/1.x server built on `asyncio` streams, with keep-alive,
  `Content-Length` and chunked request bodies

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Running the demo server

```
reeweb
```

This starts the demo application (`reeweb.app.build_engine`) on
`127.0.0.1:3000`. It serves these GET routes:

| Path                  | Response                 |
|-----------------------|--------------------------|
| `/`                   | `hello`                  |
| `/hello`              | `hello2`                 |
| `/hello/:name`        | `hello <name>`           |
| `/assets/*filepath`   | `hello <filepath>`       |
| `/api/hello`          | `hello`, access-logged   |

Another address can be given as the only argument, for example
`reeweb 0.0.0.0:8080`. The address must be `ip:port` with a literal IP
address (IPv6 in brackets, e.g. `[::1]:8080`); host names are rejected.
The server runs until interrupted with Ctrl-C.

## Writing an application

```python
import asyncio

from reeweb.engine import AccessLog, Engine
from reeweb.router import Response


async def greet(ctx):
    return Response.with_text(f"hello {ctx.get_param('name')}")


async def files(ctx):
    return Response.with_text(ctx.get_param("filepath"))


engine = Engine()
engine.get("/greet/:name", greet)
engine.get("/files/*filepath", files)

api = engine.group("/api")
api.use_middleware(AccessLog())
api.get("/greet/:name", greet)

asyncio.run(engine.run("127.0.0.1:3000"))
```

A handler is an async callable that takes a `RequestCtx` and returns a
`Response`. `RequestCtx.request` is a `Request` with `method`, `path`
(without query string), `headers` (names lower-cased) and `body`. Route
parameters are read with `ctx.get_param(name)`, which returns `None` for an
unknown name.

`Engine.get` and `RouterGroup.get` register GET routes; `add_route(method,
pattern, handler)` registers a route for any method. Group routes are
registered under the group prefix followed by the pattern.

`Response.with_text(text)` builds a `200` `text/plain` response;
`Response.empty()` builds a `200` with no body; `Response.encode()` gives
the HTTP/1.1 bytes, adding `Content-Length` when it is missing.

If no route matches, the reply is a `200` with the text `404 Not Found`.
A malformed request gets a `400` and the connection is closed.

### Route groups

A request goes to the first group, in order of creation, whose prefix its
path starts with; otherwise it goes to the routes registered on the engine
itself. Calling `Engine.group` again with the same prefix replaces the
earlier group.

### Middleware

Subclass `Middleware` and implement `async def handle(self, ctx, next)`.
Call `await next.run(ctx)` to pass the request on down the chain, and
return the response:

```python
from reeweb.engine import Middleware


class Tag(Middleware):
    async def handle(self, ctx, next):
        response = await next.run(ctx)
        response.headers["X-Tag"] = "demo"
        return response
```

Add it with `Engine.use_middleware` or `RouterGroup.use_middleware`.
Middleware added to a group runs before middleware added to the engine.
Requests that belong to no group run only the engine's middleware.

`AccessLog` prints one line per request to standard output: the method,
the quoted path, the status code and the elapsed time in milliseconds.

### Dispatching without a socket

`Engine.dispatch(request)` runs a `reeweb.context.Request` through routing
and middleware and returns the `Response`, which is handy in tests:

```python
import asyncio

from reeweb.app import build_engine
from reeweb.context import Request

response = asyncio.run(build_engine().dispatch(Request("GET", "/hello/world")))
assert response.body == b"hello world"
```

## What it does not do

The server speaks plain HTTP/1.x only: there is no TLS, no HTTP/2, no
static file serving and no response streaming. Unmatched routes are not
answered with a `404` or `405` status, only with the `404 Not Found` text
under status `200`.