import pytest

from hyperlane.errors import (
    DuplicatePatternError,
    EmptyPatternError,
    HttpReadError,
    InvalidHttpRequestError,
    RouteError,
    ServerError,
    TcpBindError,
    UnknownServerError,
)


def test_empty_pattern_message():
    assert str(EmptyPatternError()) == "Route pattern cannot be empty"


def test_duplicate_pattern_message_and_attribute():
    err = DuplicatePatternError("/")
    assert str(err) == "Route pattern already exists: /"
    assert err.pattern == "/"


@pytest.mark.parametrize(
    "cls, prefix",
    [
        (TcpBindError, "Tcp bind error"),
        (UnknownServerError, "Unknown error"),
        (HttpReadError, "Http read error"),
        (InvalidHttpRequestError, "Invalid http request"),
    ],
)
def test_server_error_messages(cls, prefix):
    err = cls("boom")
    text = str(err)
    assert text.startswith(prefix)
    assert text.endswith("boom")
    assert err.detail == "boom"


def test_invalid_request_keeps_request():
    request = object()
    err = InvalidHttpRequestError(request)
    assert err.request is request


def test_route_errors_share_route_error_base():
    empty = EmptyPatternError()
    duplicate = DuplicatePatternError("/users")
    assert isinstance(empty, RouteError)
    assert isinstance(duplicate, RouteError)
    assert str(empty) == "Route pattern cannot be empty"
    assert duplicate.pattern == "/users"
    assert str(duplicate) == "Route pattern already exists: /users"


@pytest.mark.parametrize(
    "cls",
    [TcpBindError, UnknownServerError, HttpReadError, InvalidHttpRequestError],
)
def test_server_errors_share_server_error_base(cls):
    err = cls("address in use")
    assert isinstance(err, ServerError)
    assert err.detail == "address in use"
    assert str(err).endswith("address in use")


def test_tcp_bind_error_text():
    err = TcpBindError("address in use")
    assert str(err).startswith("Tcp bind error")
    assert err.detail == "address in use"