"""Liveness endpoints."""

from __future__ import annotations

from billfold import __version__
from billfold.models import now
from billfold.request import Request
from billfold.response import JSONResponse


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": __version__, "timestamp": now()})
