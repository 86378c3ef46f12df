"""The HTTP and WebSocket server: routes, middleware and the accept loop."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import socket
import struct
import traceback
from dataclasses import replace
from typing import Any, Optional

from .config import DEFAULT_BUFFER_SIZE, ServerConfig
from .context import Context
from .errors import TcpBindError
from .handler import ErrorHandle, Handler
from .protocol import (
    Request,
    RequestError,
    ResponseError,
    Stream,
    read_http_request,
    read_websocket_request,
)
from .route import RouteMatcher


async def _call(func: Handler, ctx: Context) -> None:
    result = func(ctx)
    if inspect.isawaitable(result):
        await result


def _apply_socket_options(writer: Any, config: ServerConfig) -> None:
    sock = writer.get_extra_info("socket")
    if sock is None:
        return
    with contextlib.suppress(OSError, AttributeError, ValueError):
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(config.nodelay))
    with contextlib.suppress(OSError, AttributeError, ValueError, struct.error):
        if config.linger is None:
            linger = struct.pack("ii", 0, 0)
        else:
            linger = struct.pack("ii", 1, int(config.linger))
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, linger)
    if config.ttl is not None:
        with contextlib.suppress(OSError, AttributeError, ValueError):
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, config.ttl)


class Server:
    """An HTTP server with exact and patterned routes and two middleware chains."""

    def __init__(self) -> None:
        self.config = ServerConfig()
        self.routes: dict = {}
        self.route_matcher = RouteMatcher()
        self.request_middlewares: list = []
        self.response_middlewares: list = []

    def host(self, host: str) -> "Server":
        self.config.host = host
        return self

    def port(self, port: int) -> "Server":
        self.config.port = port
        return self

    def http_line_buffer_size(self, buffer_size: int) -> "Server":
        """Set the HTTP read buffer size; zero selects the default."""
        self.config.http_line_buffer_size = buffer_size or DEFAULT_BUFFER_SIZE
        return self

    def websocket_buffer_size(self, buffer_size: int) -> "Server":
        """Set the WebSocket read buffer size; zero selects the default."""
        self.config.websocket_buffer_size = buffer_size or DEFAULT_BUFFER_SIZE
        return self

    def error_handle(self, func: ErrorHandle) -> "Server":
        """Set the callable that receives the text of errors raised by handlers."""
        self.config.error_handle = func
        return self

    def set_nodelay(self, nodelay: bool) -> "Server":
        self.config.nodelay = nodelay
        return self

    def enable_nodelay(self) -> "Server":
        return self.set_nodelay(True)

    def disable_nodelay(self) -> "Server":
        return self.set_nodelay(False)

    def set_linger(self, linger: Optional[float]) -> "Server":
        """Set the linger time in seconds, or None to turn lingering off."""
        self.config.linger = linger
        return self

    def enable_linger(self, linger: float) -> "Server":
        return self.set_linger(linger)

    def disable_linger(self) -> "Server":
        return self.set_linger(None)

    def set_ttl(self, ttl: int) -> "Server":
        self.config.ttl = ttl
        return self

    def enable_inner_http_handle(self, route: Any) -> "Server":
        self.config.enable_inner_http_handle(str(route))
        return self

    def disable_inner_http_handle(self, route: Any) -> "Server":
        """Disable the built-in HTTP loop for ``route``; raise RouteError on a bad pattern."""
        self.config.disable_inner_http_handle(str(route))
        return self

    def enable_inner_websocket_handle(self, route: Any) -> "Server":
        self.config.enable_inner_websocket_handle(str(route))
        return self

    def disable_inner_websocket_handle(self, route: Any) -> "Server":
        """Disable the built-in WebSocket loop for ``route``; raise RouteError on a bad pattern."""
        self.config.disable_inner_websocket_handle(str(route))
        return self

    def route(self, route: Any, func: Handler) -> "Server":
        """Register ``func`` for ``route``; raise RouteError on a bad or duplicate pattern."""
        route_str = str(route)
        self.route_matcher.add(route_str, func)
        self.routes[route_str] = func
        return self

    def request_middleware(self, func: Handler) -> "Server":
        self.request_middlewares.append(func)
        return self

    def response_middleware(self, func: Handler) -> "Server":
        self.response_middlewares.append(func)
        return self

    async def run(self) -> None:
        """Bind and serve until cancelled; raise TcpBindError if binding fails."""
        config = replace(self.config)
        try:
            listener = await asyncio.start_server(
                lambda reader, writer: self._handle_connection(reader, writer, config),
                config.host,
                config.port,
            )
        except OSError as exc:
            raise TcpBindError(str(exc)) from exc
        try:
            await asyncio.get_running_loop().create_future()
        finally:
            listener.close()

    async def _handle_connection(self, reader: Any, writer: Any, config: ServerConfig) -> None:
        _apply_socket_options(writer, config)
        stream = Stream(reader, writer)
        try:
            try:
                request = await read_http_request(stream, config.http_line_buffer_size)
            except RequestError:
                return
            if request.upgrade_type.is_websocket:
                await self._handle_websocket_connection(stream, config, request)
            else:
                await self._handle_http_connection(stream, config, request)
        except Exception as exc:
            text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            config.error_handle(text)
        finally:
            await stream.close()

    async def _handle_request(self, stream: Stream, request: Request) -> bool:
        ctx = Context.from_stream_request(stream, request)
        for middleware in list(self.request_middlewares):
            await _call(middleware, ctx)
            if ctx.aborted:
                break
        if not ctx.aborted:
            handler = self.routes.get(request.path)
            if handler is not None:
                await _call(handler, ctx)
            else:
                matched = self.route_matcher.match_route(request.path)
                if matched is not None:
                    handler, params = matched
                    ctx.route_params = params
                    await _call(handler, ctx)
            for middleware in list(self.response_middlewares):
                if ctx.aborted:
                    break
                await _call(middleware, ctx)
        await asyncio.sleep(0)
        return request.is_enable_keep_alive()

    async def _handle_websocket_connection(
        self, stream: Stream, config: ServerConfig, first_request: Request
    ) -> None:
        ctx = Context.from_stream_request(stream, first_request)
        try:
            await ctx.handle_websocket()
        except ResponseError:
            return
        if config.contains_disable_inner_websocket_handle(first_request.path):
            while await self._handle_request(stream, first_request):
                pass
            return
        while True:
            try:
                request = await read_websocket_request(
                    stream, config.websocket_buffer_size, first_request
                )
            except RequestError:
                return
            await self._handle_request(stream, request)

    async def _handle_http_connection(
        self, stream: Stream, config: ServerConfig, first_request: Request
    ) -> None:
        if not await self._handle_request(stream, first_request):
            return
        if config.contains_disable_inner_http_handle(first_request.path):
            while await self._handle_request(stream, first_request):
                pass
            return
        while True:
            try:
                request = await read_http_request(stream, config.http_line_buffer_size)
            except RequestError:
                return
            if not await self._handle_request(stream, request):
                return