"""Exceptions raised by the server and the route table."""

from __future__ import annotations

from typing import Any


class ServerError(Exception):
    """Base class for errors reported while running the server."""

    prefix = "Server error"

    def __init__(self, detail: Any) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.prefix}: {self.detail}"


class TcpBindError(ServerError):
    """The listening socket could not be bound."""

    prefix = "Tcp bind error"


class UnknownServerError(ServerError):
    """An error with no more specific category."""

    prefix = "Unknown error"


class HttpReadError(ServerError):
    """Reading an HTTP request from a connection failed."""

    prefix = "Http read error"


class InvalidHttpRequestError(ServerError):
    """A request was read but is not valid HTTP."""

    prefix = "Invalid http request"

    def __init__(self, request: Any) -> None:
        super().__init__(request)
        self.request = request


class RouteError(Exception):
    """Base class for errors in route patterns."""


class EmptyPatternError(RouteError):
    """A route pattern was the empty string."""

    def __init__(self) -> None:
        super().__init__("Route pattern cannot be empty")


class DuplicatePatternError(RouteError):
    """A route pattern equivalent to an existing one was added."""

    def __init__(self, pattern: str) -> None:
        super().__init__(f"Route pattern already exists: {pattern}")
        self.pattern = pattern