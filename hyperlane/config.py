"""Server configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .handler import ErrorHandle, print_error_handle
from .route import RouteMatcher

DEFAULT_HOST = "0.0.0.0"
DEFAULT_WEB_PORT = 80
DEFAULT_BUFFER_SIZE = 4096
DEFAULT_NODELAY = False
DEFAULT_LINGER: Optional[float] = None
DEFAULT_TTL: Optional[int] = None


async def _noop_handler(ctx: Any) -> None:
    return None


@dataclass
class ServerConfig:
    """Settings for a server and the routes whose built-in loop is disabled."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_WEB_PORT
    websocket_buffer_size: int = DEFAULT_BUFFER_SIZE
    http_line_buffer_size: int = DEFAULT_BUFFER_SIZE
    nodelay: bool = DEFAULT_NODELAY
    linger: Optional[float] = DEFAULT_LINGER
    ttl: Optional[int] = DEFAULT_TTL
    disabled_http_routes: set = field(default_factory=set)
    disabled_websocket_routes: set = field(default_factory=set)
    route_matcher: RouteMatcher = field(default_factory=RouteMatcher)
    error_handle: ErrorHandle = print_error_handle

    def contains_disable_inner_http_handle(self, route: str) -> bool:
        """Whether the built-in HTTP loop is disabled for ``route``."""
        return (
            route in self.disabled_http_routes
            or self.route_matcher.match_route(route) is not None
        )

    def disable_inner_http_handle(self, route: str) -> bool:
        """Disable the built-in HTTP loop for ``route``; raise RouteError on a bad pattern."""
        self.route_matcher.add(route, _noop_handler)
        added = route not in self.disabled_http_routes
        self.disabled_http_routes.add(route)
        return added

    def enable_inner_http_handle(self, route: str) -> bool:
        """Remove ``route`` from the disabled HTTP routes; return whether it was there."""
        if route in self.disabled_http_routes:
            self.disabled_http_routes.remove(route)
            return True
        return False

    def contains_disable_inner_websocket_handle(self, route: str) -> bool:
        """Whether the built-in WebSocket loop is disabled for ``route``."""
        return (
            route in self.disabled_websocket_routes
            or self.route_matcher.match_route(route) is not None
        )

    def disable_inner_websocket_handle(self, route: str) -> bool:
        """Disable the built-in WebSocket loop for ``route``; raise RouteError on a bad pattern."""
        self.route_matcher.add(route, _noop_handler)
        added = route not in self.disabled_websocket_routes
        self.disabled_websocket_routes.add(route)
        return added

    def enable_inner_websocket_handle(self, route: str) -> bool:
        """Remove ``route`` from the disabled WebSocket routes; return whether it was there."""
        if route in self.disabled_websocket_routes:
            self.disabled_websocket_routes.remove(route)
            return True
        return False