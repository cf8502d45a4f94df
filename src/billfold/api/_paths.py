"""Pull parameters back out of a raw request path.

The router only answers whether a path fits a route; handlers recover the
concrete month, ids and body themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from billfold.errors import ValidationError
from billfold.models import check_month

if TYPE_CHECKING:
    from billfold.request import Request


def month_of(request: Request) -> str:
    """The ``YYYY-MM`` segment of ``/api/months/<month>/...``."""
    segments = request.segments
    if len(segments) < 3 or segments[:2] != ["api", "months"]:
        msg = "Invalid URL. Expected /api/months/YYYY-MM"
        raise ValidationError(msg, field="month")
    return check_month(segments[2])


def segment_at(request: Request, index: int, what: str) -> str:
    segments = request.segments
    if index >= len(segments):
        msg = f"Missing {what} in path {request.path}"
        raise ValidationError(msg)
    return segments[index]


def after(request: Request, keyword: str, what: str) -> str:
    """The segment right after the first *keyword* past the month position."""
    segments = request.segments
    for index in range(2, len(segments) - 1):
        if segments[index] == keyword:
            return segments[index + 1]
    msg = f"Missing {what} in path {request.path}"
    raise ValidationError(msg)


async def body_of(request: Request) -> dict[str, Any]:
    data = await request.json()
    if not isinstance(data, dict):
        msg = "Request body must be a JSON object"
        raise ValidationError(msg)
    return data
