"""Asyncio HTTP/1.1 server with middleware, parameterised routes and WebSocket support."""

__version__ = "5.11.0"

__all__ = ["config", "context", "errors", "handler", "protocol", "route", "server"]