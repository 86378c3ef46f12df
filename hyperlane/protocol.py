"""HTTP requests and responses, WebSocket framing and the connection stream."""

from __future__ import annotations

import asyncio
import base64
import contextlib
import hashlib
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from http import HTTPStatus
from itertools import cycle
from typing import Any, Optional, Union
from urllib.parse import parse_qsl, urlencode

HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"
WEBSOCKET_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
DEFAULT_SOCKET_ADDR = ("0.0.0.0", 0)

CONNECTION = "connection"
CONTENT_LENGTH = "content-length"
UPGRADE = "upgrade"
WEBSOCKET = "websocket"
SEC_WEBSOCKET_KEY = "sec-websocket-key"
SEC_WEBSOCKET_ACCEPT = "sec-websocket-accept"

OPCODE_CONTINUATION = 0x0
OPCODE_TEXT = 0x1
OPCODE_BINARY = 0x2
OPCODE_CLOSE = 0x8
OPCODE_PING = 0x9
OPCODE_PONG = 0xA

Body = Union[bytes, bytearray, str]


class RequestError(Exception):
    """A request could not be read from a connection."""


class ResponseError(Exception):
    """A response could not be written to a connection."""


class UpgradeType(Enum):
    """Protocol a request asks to upgrade to."""

    HTTP = "http"
    WEBSOCKET = "websocket"
    H2C = "h2c"
    UNKNOWN = "unknown"

    @property
    def is_websocket(self) -> bool:
        return self is UpgradeType.WEBSOCKET


def _upgrade_type(value: Optional[str]) -> UpgradeType:
    if value is None:
        return UpgradeType.HTTP
    normalized = value.strip().lower()
    if normalized == "websocket":
        return UpgradeType.WEBSOCKET
    if normalized == "h2c":
        return UpgradeType.H2C
    return UpgradeType.UNKNOWN


def _as_bytes(body: Body) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else bytes(body)


def _find_header(headers: dict, key: str) -> Optional[str]:
    wanted = key.lower()
    return next((value for name, value in headers.items() if name.lower() == wanted), None)


@dataclass
class Request:
    """A parsed HTTP request, or a WebSocket message carried in one."""

    method: str = "GET"
    host: str = ""
    version: str = HTTP_VERSION
    path: str = "/"
    query: dict = field(default_factory=dict)
    headers: dict = field(default_factory=dict)
    body: bytes = b""
    upgrade_type: UpgradeType = UpgradeType.HTTP

    def get_header(self, key: str) -> Optional[str]:
        """Header value for ``key``, compared without regard to case."""
        return _find_header(self.headers, key)

    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def body_json(self) -> Any:
        return json.loads(self.body)

    def is_enable_keep_alive(self) -> bool:
        """Whether the connection should stay open after this request."""
        connection = self.get_header(CONNECTION)
        if connection is not None:
            value = connection.strip().lower()
            if value == "keep-alive":
                return True
            if value == "close":
                return False
        return self.version.upper() == HTTP_VERSION

    def to_text(self) -> str:
        target = self.path + (f"?{urlencode(self.query)}" if self.query else "")
        lines = [f"{self.method} {target} {self.version}"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        return CRLF.join(lines) + CRLF + CRLF + self.body_text()


def _default_reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"


@dataclass
class Response:
    """An HTTP response under construction."""

    version: str = HTTP_VERSION
    status_code: int = 200
    reason_phrase: str = ""
    headers: dict = field(default_factory=dict)
    body: bytes = b""

    def set_header(self, key: str, value: Any) -> "Response":
        """Set ``key``, replacing any header of the same name in another case."""
        for name in [name for name in self.headers if name.lower() == key.lower()]:
            del self.headers[name]
        self.headers[key] = str(value)
        return self

    def get_header(self, key: str) -> Optional[str]:
        return _find_header(self.headers, key)

    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def body_json(self) -> Any:
        return json.loads(self.body)

    def build(self) -> bytes:
        """The full response as it goes on the wire."""
        reason = self.reason_phrase or _default_reason(self.status_code)
        headers = dict(self.headers)
        if self.status_code != 101 and _find_header(headers, CONTENT_LENGTH) is None:
            headers[CONTENT_LENGTH] = str(len(self.body))
        lines = [f"{self.version} {self.status_code} {reason}"]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        head = CRLF.join(lines) + CRLF + CRLF
        return head.encode("utf-8") + self.body

    def to_text(self) -> str:
        return self.build().decode("utf-8", errors="replace")

    async def send(self, stream: "Stream") -> None:
        await stream.write(self.build())

    async def send_body(self, stream: "Stream", websocket: bool) -> None:
        """Send only the body, framed as a WebSocket message when ``websocket``."""
        data = encode_websocket_frame(self.body) if websocket else self.body
        await stream.write(data)

    async def flush(self, stream: "Stream") -> None:
        await stream.flush()

    async def close(self, stream: "Stream") -> None:
        await stream.close()


class Stream:
    """A client connection: an asyncio reader and writer pair."""

    def __init__(self, reader: Any, writer: Any) -> None:
        self.reader = reader
        self.writer = writer
        self.closed = False
        self._lock = asyncio.Lock()

    def peer_addr(self) -> Optional[tuple]:
        """The remote ``(host, port)``, or None when unknown."""
        peer = self.writer.get_extra_info("peername")
        if not isinstance(peer, tuple) or len(peer) < 2:
            return None
        return str(peer[0]), int(peer[1])

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise ResponseError("stream is closed")
        async with self._lock:
            try:
                self.writer.write(data)
                await self.writer.drain()
            except (ConnectionError, OSError) as exc:
                raise ResponseError(f"write error: {exc}") from exc

    async def flush(self) -> None:
        if self.closed:
            raise ResponseError("stream is closed")
        try:
            await self.writer.drain()
        except (ConnectionError, OSError) as exc:
            raise ResponseError(f"flush error: {exc}") from exc

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.writer.close()
        with contextlib.suppress(ConnectionError, OSError):
            await self.writer.wait_closed()


async def _read_line(reader: Any) -> bytes:
    try:
        return await reader.readline()
    except (ValueError, ConnectionError, OSError) as exc:
        raise RequestError(f"http read error: {exc}") from exc


async def _read_exact(reader: Any, length: int, chunk_size: int) -> bytes:
    chunk_size = max(1, chunk_size)
    data = bytearray()
    try:
        while len(data) < length:
            data += await reader.readexactly(min(chunk_size, length - len(data)))
    except (asyncio.IncompleteReadError, ConnectionError, OSError) as exc:
        raise RequestError(f"read error: {exc}") from exc
    return bytes(data)


async def read_http_request(stream: Stream, buffer_size: int) -> Request:
    """Read one HTTP request from ``stream``; raise RequestError on failure."""
    reader = stream.reader
    raw = await _read_line(reader)
    if not raw:
        raise RequestError("connection closed before a request was read")
    line = raw.decode("latin-1").strip()
    parts = line.split()
    if len(parts) != 3:
        raise RequestError(f"invalid request line: {line!r}")
    method, target, version = parts
    headers: dict = {}
    while True:
        raw = await _read_line(reader)
        if not raw:
            raise RequestError("connection closed while reading headers")
        header_line = raw.decode("latin-1").strip()
        if not header_line:
            break
        name, sep, value = header_line.partition(":")
        if not sep:
            raise RequestError(f"invalid header line: {header_line!r}")
        headers[name.strip().lower()] = value.strip()
    length_text = headers.get(CONTENT_LENGTH, "0")
    try:
        length = int(length_text)
    except ValueError as exc:
        raise RequestError(f"invalid content-length: {length_text!r}") from exc
    if length < 0:
        raise RequestError(f"invalid content-length: {length_text!r}")
    body = await _read_exact(reader, length, buffer_size)
    target = target.partition("#")[0]
    path, _, query_string = target.partition("?")
    return Request(
        method=method.upper(),
        host=headers.get("host", ""),
        version=version,
        path=path or "/",
        query=dict(parse_qsl(query_string, keep_blank_values=True)),
        headers=headers,
        body=body,
        upgrade_type=_upgrade_type(headers.get(UPGRADE)),
    )


def _unmask(payload: bytes, mask: bytes) -> bytes:
    if not mask:
        return bytes(payload)
    return bytes(byte ^ key for byte, key in zip(payload, cycle(mask)))


async def _read_frame(reader: Any, buffer_size: int) -> tuple:
    head = await _read_exact(reader, 2, 2)
    fin = bool(head[0] & 0x80)
    opcode = head[0] & 0x0F
    masked = bool(head[1] & 0x80)
    length = head[1] & 0x7F
    if length == 126:
        length = int.from_bytes(await _read_exact(reader, 2, 2), "big")
    elif length == 127:
        length = int.from_bytes(await _read_exact(reader, 8, 8), "big")
    mask = await _read_exact(reader, 4, 4) if masked else b""
    payload = await _read_exact(reader, length, buffer_size)
    return fin, opcode, _unmask(payload, mask)


async def read_websocket_request(
    stream: Stream, buffer_size: int, last_request: Request
) -> Request:
    """Read one WebSocket message; return ``last_request`` carrying it as body."""
    message = bytearray()
    while True:
        fin, opcode, payload = await _read_frame(stream.reader, buffer_size)
        if opcode == OPCODE_CLOSE:
            raise RequestError("websocket connection closed")
        if opcode == OPCODE_PING:
            try:
                await stream.write(_encode_frame(OPCODE_PONG, payload))
            except ResponseError as exc:
                raise RequestError(str(exc)) from exc
            continue
        if opcode == OPCODE_PONG:
            continue
        message += payload
        if fin:
            break
    return replace(
        last_request,
        body=bytes(message),
        headers=dict(last_request.headers),
        query=dict(last_request.query),
    )


def generate_accept_key(key: str) -> str:
    """The Sec-WebSocket-Accept value answering a Sec-WebSocket-Key."""
    digest = hashlib.sha1((key.strip() + WEBSOCKET_GUID).encode("ascii")).digest()
    return base64.b64encode(digest).decode("ascii")


def _encode_frame(opcode: int, payload: bytes) -> bytes:
    length = len(payload)
    head = bytes([0x80 | opcode])
    if length < 126:
        head += bytes([length])
    elif length < 1 << 16:
        head += bytes([126]) + length.to_bytes(2, "big")
    else:
        head += bytes([127]) + length.to_bytes(8, "big")
    return head + payload


def encode_websocket_frame(payload: Body) -> bytes:
    """A single unmasked final frame: text if the payload is UTF-8, else binary."""
    data = _as_bytes(payload)
    try:
        data.decode("utf-8")
        opcode = OPCODE_TEXT
    except UnicodeDecodeError:
        opcode = OPCODE_BINARY
    return _encode_frame(opcode, data)


def decode_websocket_frame(data: bytes) -> Optional[tuple]:
    """Decode the frame at the start of ``data``.

    Returns ``(fin, opcode, payload, consumed)``, or None if ``data`` holds
    less than a whole frame.
    """
    if len(data) < 2:
        return None
    fin = bool(data[0] & 0x80)
    opcode = data[0] & 0x0F
    masked = bool(data[1] & 0x80)
    length = data[1] & 0x7F
    offset = 2
    if length == 126:
        if len(data) < 4:
            return None
        length = int.from_bytes(data[2:4], "big")
        offset = 4
    elif length == 127:
        if len(data) < 10:
            return None
        length = int.from_bytes(data[2:10], "big")
        offset = 10
    mask = b""
    if masked:
        if len(data) < offset + 4:
            return None
        mask = bytes(data[offset:offset + 4])
        offset += 4
    end = offset + length
    if len(data) < end:
        return None
    return fin, opcode, _unmask(bytes(data[offset:end]), mask), end