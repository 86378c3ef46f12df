"""Route patterns with static and ``:name`` segments, and a matcher over them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .errors import DuplicatePatternError, EmptyPatternError

PATH_SEPARATOR = "/"
PARAM_PREFIX = ":"

RouteParams = dict


@dataclass(frozen=True)
class StaticSegment:
    """A path segment that must match literally."""

    value: str


@dataclass(frozen=True, eq=False)
class DynamicSegment:
    """A path segment captured into a named parameter."""

    name: str

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DynamicSegment):
            return True
        return NotImplemented

    def __hash__(self) -> int:
        return hash(DynamicSegment)


Segment = Union[StaticSegment, DynamicSegment]


def _split_path(path: str) -> list[str]:
    path = path.lstrip(PATH_SEPARATOR)
    return path.split(PATH_SEPARATOR) if path else []


@dataclass(frozen=True, eq=False)
class RoutePattern:
    """A parsed route pattern."""

    segments: tuple

    @classmethod
    def parse(cls, route: str) -> "RoutePattern":
        """Parse ``route``; raise EmptyPatternError for an empty string."""
        if not route:
            raise EmptyPatternError()
        segments = tuple(
            DynamicSegment(part[1:]) if part.startswith(PARAM_PREFIX) else StaticSegment(part)
            for part in _split_path(route)
        )
        return cls(segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoutePattern):
            return NotImplemented
        return len(self.segments) == len(other.segments) and all(
            a == b for a, b in zip(self.segments, other.segments)
        )

    def __hash__(self) -> int:
        return hash(
            tuple(s.value if isinstance(s, StaticSegment) else None for s in self.segments)
        )

    def match_path(self, path: str) -> Optional[dict]:
        """Return the captured parameters if ``path`` matches, else None."""
        parts = _split_path(path)
        if len(parts) != len(self.segments):
            return None
        params: dict = {}
        for segment, part in zip(self.segments, parts):
            if isinstance(segment, StaticSegment):
                if segment.value != part:
                    return None
            else:
                params[segment.name] = part
        return params


Handler = Callable[[Any], Any]


class RouteMatcher:
    """Ordered collection of route patterns and their handlers."""

    def __init__(self) -> None:
        self._routes: list[tuple[RoutePattern, Handler]] = []

    def add(self, pattern: str, handler: Handler) -> None:
        """Register ``handler`` under ``pattern``; raise RouteError on a bad or duplicate pattern."""
        route_pattern = RoutePattern.parse(pattern)
        if any(existing == route_pattern for existing, _ in self._routes):
            raise DuplicatePatternError(pattern)
        self._routes.append((route_pattern, handler))

    def match_route(self, path: str) -> Optional[tuple[Handler, dict]]:
        """Return the first handler matching ``path`` with its parameters, or None."""
        for pattern, handler in self._routes:
            params = pattern.match_path(path)
            if params is not None:
                return handler, params
        return None