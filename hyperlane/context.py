"""Per-request context shared by middleware and route handlers."""

from __future__ import annotations

from typing import Any, Optional, Union

from .protocol import (
    CONNECTION,
    DEFAULT_SOCKET_ADDR,
    SEC_WEBSOCKET_ACCEPT,
    SEC_WEBSOCKET_KEY,
    UPGRADE,
    WEBSOCKET,
    Request,
    RequestError,
    Response,
    ResponseError,
    Stream,
    generate_accept_key,
    read_http_request,
    read_websocket_request,
)

HOST_PORT_SEPARATOR = ":"

Body = Union[bytes, bytearray, str]


def _as_bytes(body: Body) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else bytes(body)


class Context:
    """The stream, request, response and attributes of one exchange."""

    def __init__(self, stream: Optional[Stream] = None, request: Optional[Request] = None) -> None:
        self.stream = stream
        self.request = request if request is not None else Request()
        self.response = Response()
        self.attributes: dict = {}
        self.route_params: dict = {}
        self.aborted = False

    @classmethod
    def from_stream_request(cls, stream: Stream, request: Request) -> "Context":
        return cls(stream, request)

    @staticmethod
    def format_host_port(host: str, port: int) -> str:
        return f"{host}{HOST_PORT_SEPARATOR}{port}"

    def socket_addr(self) -> Optional[tuple]:
        """The peer's ``(host, port)``, or None without a stream."""
        return self.stream.peer_addr() if self.stream is not None else None

    def socket_addr_or_default(self) -> tuple:
        addr = self.socket_addr()
        return addr if addr is not None else DEFAULT_SOCKET_ADDR

    def route_param(self, name: str) -> Optional[str]:
        return self.route_params.get(name)

    def request_query(self, key: str) -> Optional[str]:
        return self.request.query.get(key)

    def request_header(self, key: str) -> Optional[str]:
        return self.request.get_header(key)

    def response_header(self, key: str) -> Optional[str]:
        return self.response.get_header(key)

    def set_response_header(self, key: str, value: Any) -> "Context":
        self.response.set_header(key, value)
        return self

    def set_response_body(self, body: Body) -> "Context":
        self.response.body = _as_bytes(body)
        return self

    def set_response_status_code(self, status_code: int) -> "Context":
        self.response.status_code = status_code
        return self

    def set_attribute(self, key: str, value: Any) -> "Context":
        self.attributes[key] = value
        return self

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def remove_attribute(self, key: str) -> "Context":
        self.attributes.pop(key, None)
        return self

    def clear_attribute(self) -> "Context":
        self.attributes.clear()
        return self

    def abort(self) -> "Context":
        self.aborted = True
        return self

    def cancel_abort(self) -> "Context":
        self.aborted = False
        return self

    def reset_response_body(self) -> "Context":
        self.response.body = b""
        return self

    def is_enable_keep_alive(self) -> bool:
        return self.request.is_enable_keep_alive()

    def _require_stream(self) -> Stream:
        if self.stream is None:
            raise ResponseError("no stream to write to")
        return self.stream

    async def _send_response(self, status_code: int, body: Body, allow_websocket: bool) -> None:
        stream = self._require_stream()
        if not allow_websocket and self.request.upgrade_type.is_websocket:
            raise ResponseError("websocket does not support calling this method")
        self.response.body = _as_bytes(body)
        self.response.status_code = status_code
        await self.response.send(stream)

    async def send_response(self, status_code: int, body: Body) -> None:
        """Send a full response; raise ResponseError on a WebSocket connection."""
        await self._send_response(status_code, body, False)

    async def send(self) -> None:
        await self.send_response(self.response.status_code, self.response.body)

    async def send_response_once(self, status_code: int, body: Body) -> None:
        """Send a full response, then close the connection."""
        await self._send_response(status_code, body, False)
        await self.close()

    async def send_once(self) -> None:
        await self.send_response_once(self.response.status_code, self.response.body)

    async def send_response_body(self, body: Body) -> None:
        """Send only a body, framed when the connection is a WebSocket."""
        stream = self._require_stream()
        self.response.body = _as_bytes(body)
        await self.response.send_body(stream, self.request.upgrade_type.is_websocket)

    async def send_body(self) -> None:
        await self.send_response_body(self.response.body)

    async def close(self) -> None:
        await self.response.close(self._require_stream())

    async def flush(self) -> None:
        await self.response.flush(self._require_stream())

    async def handle_websocket(self) -> None:
        """Answer the WebSocket handshake of the current request."""
        key = self.request_header(SEC_WEBSOCKET_KEY)
        if key is None:
            raise ResponseError(f"missing {SEC_WEBSOCKET_KEY} header")
        (
            self.set_response_header(UPGRADE, WEBSOCKET)
            .set_response_header(CONNECTION, UPGRADE)
            .set_response_header(SEC_WEBSOCKET_ACCEPT, generate_accept_key(key))
        )
        await self._send_response(101, b"", True)

    def _ready_to_read(self) -> Stream:
        self.reset_response_body()
        if self.aborted:
            raise RequestError("request aborted")
        if self.stream is None:
            raise RequestError("no stream to read from")
        return self.stream

    async def http_request_from_stream(self, buffer_size: int) -> Request:
        """Read the next HTTP request and make it the current one."""
        stream = self._ready_to_read()
        self.request = await read_http_request(stream, buffer_size)
        return self.request

    async def websocket_request_from_stream(self, buffer_size: int) -> Request:
        """Read the next WebSocket message and make it the current request."""
        stream = self._ready_to_read()
        self.request = await read_websocket_request(stream, buffer_size, self.request)
        return self.request