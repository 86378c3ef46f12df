import asyncio

import pytest

from hyperlane.context import Context
from hyperlane.protocol import (
    DEFAULT_SOCKET_ADDR,
    SEC_WEBSOCKET_ACCEPT,
    Request,
    RequestError,
    ResponseError,
    Stream,
    UpgradeType,
    decode_websocket_frame,
    encode_websocket_frame,
    generate_accept_key,
)


class FakeWriter:
    def __init__(self, peer=("127.0.0.1", 5000)):
        self.data = bytearray()
        self.closed = False
        self.peer = peer

    def write(self, data):
        self.data += data

    async def drain(self):
        return None

    def close(self):
        self.closed = True

    async def wait_closed(self):
        return None

    def get_extra_info(self, name, default=None):
        return self.peer if name == "peername" else default


def make_stream(data=b""):
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return Stream(reader, FakeWriter())


def websocket_request(**headers):
    return Request(path="/ws", headers=headers, upgrade_type=UpgradeType.WEBSOCKET)


def test_format_host_port():
    assert Context.format_host_port("127.0.0.1", 8080) == "127.0.0.1:8080"


def test_socket_addr_without_stream():
    ctx = Context()
    assert ctx.socket_addr() is None
    assert ctx.socket_addr_or_default() == DEFAULT_SOCKET_ADDR


def test_socket_addr_with_stream():
    ctx = Context.from_stream_request(Stream(None, FakeWriter(("10.1.2.3", 999))), Request())
    assert ctx.socket_addr() == ("10.1.2.3", 999)
    assert ctx.socket_addr_or_default() == ("10.1.2.3", 999)


def test_attributes():
    ctx = Context()
    ctx.set_attribute("a", 1).set_attribute("b", [2])
    assert ctx.get_attribute("a") == 1
    assert ctx.get_attribute("missing", "fallback") == "fallback"
    ctx.remove_attribute("a")
    assert ctx.get_attribute("a") is None
    ctx.clear_attribute()
    assert ctx.attributes == {}


def test_request_accessors_and_route_params():
    request = Request(query={"q": "term"}, headers={"accept": "text/plain"})
    ctx = Context(request=request)
    ctx.route_params = {"id": "42"}
    assert ctx.request_query("q") == "term"
    assert ctx.request_header("Accept") == "text/plain"
    assert ctx.route_param("id") == "42"
    assert ctx.route_param("other") is None


def test_response_setters_chain():
    ctx = Context()
    result = ctx.set_response_header("X-A", "1").set_response_status_code(201).set_response_body("hi")
    assert result is ctx
    assert ctx.response_header("x-a") == "1"
    assert ctx.response.status_code == 201
    assert ctx.response.body == b"hi"
    assert ctx.reset_response_body().response.body == b""


def test_abort_toggle():
    ctx = Context()
    assert ctx.abort().aborted is True
    assert ctx.cancel_abort().aborted is False


@pytest.mark.asyncio
async def test_send_without_stream_raises():
    ctx = Context()
    with pytest.raises(ResponseError):
        await ctx.send_response(200, "x")
    with pytest.raises(ResponseError):
        await ctx.close()
    with pytest.raises(ResponseError):
        await ctx.send_body()


@pytest.mark.asyncio
async def test_send_response_writes_response():
    ctx = Context(make_stream(), Request())
    await ctx.send_response(404, "missing")
    assert ctx.response.status_code == 404
    assert bytes(ctx.stream.writer.data) == ctx.response.build()
    assert ctx.stream.writer.data.endswith(b"missing")


@pytest.mark.asyncio
async def test_send_uses_current_response():
    ctx = Context(make_stream(), Request())
    ctx.set_response_status_code(202).set_response_body("queued")
    await ctx.send()
    assert bytes(ctx.stream.writer.data) == ctx.response.build()
    assert ctx.stream.writer.closed is False


@pytest.mark.asyncio
async def test_send_once_closes_stream():
    ctx = Context(make_stream(), Request())
    await ctx.send_once()
    assert ctx.stream.writer.closed is True


@pytest.mark.asyncio
async def test_send_response_refused_on_websocket():
    ctx = Context(make_stream(), websocket_request())
    with pytest.raises(ResponseError):
        await ctx.send_response(200, "x")


@pytest.mark.asyncio
async def test_send_response_body_frames_on_websocket():
    ctx = Context(make_stream(), websocket_request())
    await ctx.send_response_body(b"echo")
    assert decode_websocket_frame(bytes(ctx.stream.writer.data))[2] == b"echo"


@pytest.mark.asyncio
async def test_handle_websocket_missing_key():
    ctx = Context(make_stream(), websocket_request())
    with pytest.raises(ResponseError):
        await ctx.handle_websocket()


@pytest.mark.asyncio
async def test_handle_websocket_handshake():
    nonce = "placeholder"
    ctx = Context(make_stream(), websocket_request(**{"sec-websocket-key": nonce}))
    await ctx.handle_websocket()
    assert ctx.response.status_code == 101
    assert ctx.response_header(SEC_WEBSOCKET_ACCEPT) == generate_accept_key(nonce)
    assert b"101 Switching Protocols" in ctx.stream.writer.data


@pytest.mark.asyncio
async def test_http_request_from_stream_replaces_request():
    ctx = Context(make_stream(b"GET /next?x=1 HTTP/1.1\r\n\r\n"), Request())
    ctx.set_response_body("stale")
    request = await ctx.http_request_from_stream(64)
    assert ctx.request is request
    assert request.path == "/next"
    assert ctx.request_query("x") == "1"
    assert ctx.response.body == b""


@pytest.mark.asyncio
async def test_request_from_stream_when_aborted():
    ctx = Context(make_stream(b"GET / HTTP/1.1\r\n\r\n"), Request())
    ctx.abort()
    with pytest.raises(RequestError):
        await ctx.http_request_from_stream(64)


@pytest.mark.asyncio
async def test_request_from_stream_without_stream():
    with pytest.raises(RequestError):
        await Context().websocket_request_from_stream(64)


@pytest.mark.asyncio
async def test_websocket_request_from_stream():
    ctx = Context(make_stream(encode_websocket_frame(b"msg")), websocket_request())
    request = await ctx.websocket_request_from_stream(64)
    assert request.body == b"msg"
    assert ctx.request.path == "/ws"


def test_keep_alive_follows_request():
    assert Context(request=Request(headers={"connection": "close"})).is_enable_keep_alive() is False
    assert Context(request=Request()).is_enable_keep_alive() is True