"""Handler signatures and the default error handler."""

from __future__ import annotations

import sys
from typing import Any, Awaitable, Callable

Handler = Callable[[Any], Awaitable[None]]
"""An async callable taking a request context."""

Middleware = Handler

ErrorHandle = Callable[[str], None]
"""A callable receiving the text of an error raised by a handler."""


def print_error_handle(error: str) -> None:
    """Write ``error`` to standard error and flush it."""
    print(error, file=sys.stderr)
    sys.stderr.flush()