# hyperlane

hyperlane is a small asyncio HTTP/1.1 server library that uses only the
standard library. It reads requests from each connection and passes them
through request middleware, a route handler and response middleware. Routes
can have named parameters. A WebSocket upgrade is answered with the
handshake, and each message that follows is handed to the route handler.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import asyncio

from hyperlane.context import Context
from hyperlane.server import Server


async def request_middleware(ctx: Context) -> None:
    ctx.set_response_header("Server", "hyperlane")
    ctx.set_response_header("Content-Type", "text/plain")


async def response_middleware(ctx: Context) -> None:
    # A full HTTP response cannot be sent on a WebSocket connection.
    if not ctx.request.upgrade_type.is_websocket:
        await ctx.send()


async def root_route(ctx: Context) -> None:
    ctx.set_response_status_code(200).set_response_body("Hello hyperlane => /")


async def user_route(ctx: Context) -> None:
    ctx.set_response_body(f"user {ctx.route_param('id')}")


async def echo_route(ctx: Context) -> None:
    await ctx.send_response_body(ctx.request.body)


async def main() -> None:
    server = Server()
    server.host("0.0.0.0").port(60000)
    server.enable_nodelay().disable_linger()
    server.http_line_buffer_size(4096).websocket_buffer_size(4096)
    server.request_middleware(request_middleware)
    server.response_middleware(response_middleware)
    server.route("/", root_route)
    server.route("/user/:id", user_route)
    server.route("/websocket", echo_route)
    await server.run()


asyncio.run(main())
```

## Modules

- `hyperlane.server`: `Server`. Its configuration methods (`host`, `port`,
  `http_line_buffer_size`, `websocket_buffer_size`, `error_handle`,
  `set_nodelay`, `enable_nodelay`, `disable_nodelay`, `set_linger`,
  `enable_linger`, `disable_linger`, `set_ttl`, `route`,
  `request_middleware`, `response_middleware`) all return the server, so
  calls can be chained. A buffer size of `0` selects the default of 4096.
  `await Server.run()` binds the address and serves until it is cancelled.
  If binding fails it raises `TcpBindError`.
- `hyperlane.context`: `Context`, one per request. It holds `stream`,
  `request`, `response`, `route_params`, `attributes` and `aborted`.
  - Setters: `set_response_header`, `set_response_body` and
    `set_response_status_code` return the context.
  - Sending: `send_response`, `send`, `send_response_once`, `send_once`,
    `send_response_body`, `send_body`, `flush` and `close` are coroutines.
    They raise `ResponseError` when there is no stream. `send_response` and
    `send` also raise it on a WebSocket connection.
  - Attributes: `set_attribute`, `get_attribute`, `remove_attribute` and
    `clear_attribute`.
- `hyperlane.protocol`: `Request` and `Response` dataclasses, and `Stream`.
  It has `read_http_request` and `read_websocket_request`. For WebSocket it
  provides `generate_accept_key`, `encode_websocket_frame` and
  `decode_websocket_frame`. It defines `RequestError` and `ResponseError`.
- `hyperlane.route`: `RoutePattern` (`parse`, `match_path`) and
  `RouteMatcher` (`add`, `match_route`).
- `hyperlane.config`: `ServerConfig`, the dataclass behind the server's
  settings.
- `hyperlane.errors`: `ServerError` and its subclasses `TcpBindError`,
  `UnknownServerError`, `HttpReadError` and `InvalidHttpRequestError`. Also
  `RouteError` and its subclasses `EmptyPatternError` and
  `DuplicatePatternError`.
- `hyperlane.handler`: the `print_error_handle` default, which writes an
  error's text to standard error.

## How requests are handled

- **Routes.** A path is first looked up exactly among the registered
  routes. If no route matches exactly, the patterns are tried in the order
  they were registered. A segment starting with `:` captures that part of
  the path. `ctx.route_param(name)` reads the captured value.
  - An empty pattern raises `EmptyPatternError`.
  - Registering a pattern equivalent to an existing one raises
    `DuplicatePatternError`. Patterns are equivalent when their static
    segments are equal and their parameters sit in the same places.
- **Middleware.** Request middleware runs before the route handler.
  Response middleware runs after it.
  - Nothing is sent automatically. A handler or middleware has to call one
    of the send methods.
  - If request middleware calls `ctx.abort()`, the rest of the request
    middleware, the handler and the response middleware are skipped.
  - If `ctx.abort()` is called later, the remaining response middleware is
    skipped.
- **Keep-alive.** After a request, the connection stays open when the
  request asks for `Connection: keep-alive`, or when it is HTTP/1.1 without
  `Connection: close`. Otherwise the connection is closed.
- **WebSocket.** A request with `Upgrade: websocket` gets a `101` handshake
  reply. After that, the server assembles each message the client sends,
  including fragmented ones. The message becomes the body of a copy of the
  first request and goes through the middleware and the route.
  - Pings are answered with pongs.
  - A close frame ends the connection.
- **Errors.** If a handler or middleware raises, the formatted traceback is
  passed to the function set with `Server.error_handle`, and the connection
  is closed.
- **Inner loop switches.** `disable_inner_http_handle(route)` and
  `disable_inner_websocket_handle(route)` stop reading new requests or
  messages on connections to `route`. Instead, the handlers are called again
  with the first request for as long as keep-alive allows. These calls also
  register `route` as a pattern, so an empty or duplicate route raises
  `RouteError`.

## What it does not do

- There is no TLS.
- There is no HTTP/2.
- Chunked request bodies are not supported. Request bodies are read by
  `Content-Length` only.
- There is no command-line program. The server is started from your own
  code with `Server.run()`.