"""ASGI and handler type aliases shared across billfold."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

Message = dict[str, Any]
Scope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

# Wraps the app: ``middleware(app) -> app``.
Middleware = Callable[[ASGIApp], ASGIApp]
# Run once on lifespan startup; may be sync or async.
StartupHook = Callable[[], Awaitable[None] | None]
# A route handler; called with ``request`` and any template params.
Handler = Callable[..., Any]
