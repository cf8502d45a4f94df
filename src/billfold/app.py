"""Billfold ASGI application: the HTTP front door of the budget backend."""

from __future__ import annotations

import asyncio
import inspect
import logging
import traceback
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from billfold.request import Request
from billfold.response import JSONResponse, Response
from billfold.routing import Router, RouteTable

if TYPE_CHECKING:
    from collections.abc import Callable

    from billfold._types import ASGIApp, Handler, Middleware, Receive, Scope, Send, StartupHook

logger = logging.getLogger("billfold.app")

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class _HandlerMeta:
    """Pre-computed handler metadata, built once at registration time."""

    __slots__ = ("handler", "is_coroutine", "param_names", "wants_request")

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.is_coroutine = inspect.iscoroutinefunction(handler)
        sig = inspect.signature(handler)
        self.wants_request = "request" in sig.parameters
        self.param_names = frozenset(sig.parameters.keys()) - {"request"}


class Billfold:
    """ASGI 3.0 web application.

    Routes are collected with :meth:`add_route` (or the method decorators)
    and frozen into an immutable :class:`~billfold.routing.RouteTable` on
    first use.

    Parameters
    ----------
    debug:
        When ``True``, 500 responses include the full traceback.
    """

    def __init__(self, *, debug: bool = False) -> None:
        self.router = Router()
        self.debug = debug
        self._middleware: list[Middleware] = []
        self._handler_meta: dict[Handler, _HandlerMeta] = {}
        self._startup: list[StartupHook] = []
        self._app: ASGIApp | None = None

    # ------------------------------------------------------------------
    # Route registration
    # ------------------------------------------------------------------

    def add_route(
        self,
        path: str,
        method: str,
        handler: Handler,
        *,
        has_path_param: bool = False,
    ) -> None:
        self.router.add_route(method, path, handler, has_path_param=has_path_param)
        if handler not in self._handler_meta:
            self._handler_meta[handler] = _HandlerMeta(handler)

    def _route(self, method: str, path: str, has_path_param: bool) -> Callable[..., Any]:
        def decorator(handler: Handler) -> Callable[..., Any]:
            self.add_route(path, method, handler, has_path_param=has_path_param)
            return handler

        return decorator

    def get(self, path: str, *, has_path_param: bool = False) -> Callable[..., Any]:
        return self._route("GET", path, has_path_param)

    def post(self, path: str, *, has_path_param: bool = False) -> Callable[..., Any]:
        return self._route("POST", path, has_path_param)

    def put(self, path: str, *, has_path_param: bool = False) -> Callable[..., Any]:
        return self._route("PUT", path, has_path_param)

    def delete(self, path: str, *, has_path_param: bool = False) -> Callable[..., Any]:
        return self._route("DELETE", path, has_path_param)

    def patch(self, path: str, *, has_path_param: bool = False) -> Callable[..., Any]:
        return self._route("PATCH", path, has_path_param)

    @property
    def routes(self) -> RouteTable:
        """The frozen route table. Further registration raises ``RuntimeError``."""
        return self.router.freeze()

    # ------------------------------------------------------------------
    # Middleware and lifecycle hooks
    # ------------------------------------------------------------------

    def add_middleware(self, middleware: Middleware) -> None:
        """Register a middleware that wraps the ASGI app.

        Called as ``middleware(app)`` and must return an ASGI callable.
        """
        self._middleware.append(middleware)
        self._app = None  # invalidate cached chain

    def on_startup(self, hook: StartupHook) -> StartupHook:
        self._startup.append(hook)
        return hook

    def _build_app(self) -> ASGIApp:
        app: ASGIApp = self._handle
        for mw in reversed(self._middleware):
            app = mw(app)
        return app

    # ------------------------------------------------------------------
    # ASGI interface
    # ------------------------------------------------------------------

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if self._app is None:
            self._app = self._build_app()
        await self._app(scope, receive, send)

    async def _handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        method: str = scope["method"]
        path: str = scope["path"]
        logger.info("%s %s", method, path)

        if method == "OPTIONS":
            await Response(status_code=204, headers=CORS_HEADERS).send(send)
            return

        route = self.routes.select(path, method)
        if route is None:
            await JSONResponse({"error": "Not Found"}, status_code=404, headers=CORS_HEADERS).send(send)
            return

        logger.debug("Matched route: %s [%s]", route.path, route.method)
        path_params = route.params(path)
        request = Request(scope, receive, path_params)

        try:
            result = await self._invoke(route.handler, request, path_params)
        except Exception as exc:
            response = self._error_response(exc)
        else:
            response = _to_response(result)

        response.set_headers(CORS_HEADERS)
        await response.send(send)

    async def _invoke(
        self,
        handler: Handler,
        request: Request,
        path_params: dict[str, Any],
    ) -> Any:
        meta = self._handler_meta[handler]
        kwargs: dict[str, Any] = {name: path_params[name] for name in meta.param_names if name in path_params}
        if meta.wants_request:
            kwargs["request"] = request

        if meta.is_coroutine:
            return await handler(**kwargs)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: handler(**kwargs))

    def _error_response(self, exc: Exception) -> JSONResponse:
        status = getattr(exc, "status", 500)
        if not isinstance(status, int) or not 400 <= status <= 599:
            status = 500
        message = str(exc) or type(exc).__name__
        body: dict[str, Any] = {"error": message}
        if status >= 500:
            logger.exception("Handler error: %s", message)
            if self.debug:
                body["traceback"] = traceback.format_exc()
        else:
            logger.warning("Request failed with %d: %s", status, message)
        return JSONResponse(body, status_code=status)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    for hook in self._startup:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return


# ------------------------------------------------------------------
# Module-level helpers
# ------------------------------------------------------------------


def _to_response(result: Any) -> Response:
    if isinstance(result, Response):
        return result
    if result is None:
        return Response(status_code=204)
    if isinstance(result, BaseModel | dict | list):
        return JSONResponse(result)
    return Response(str(result).encode("utf-8"))
