"""Occurrences inside an instance.

``/api/months/<month>/<kind>/<id>/occurrences/<occurrence id>/<close|reopen|payments>``
and ``.../payments/<payment id>`` for removal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from billfold.api._paths import after, body_of, month_of
from billfold.response import JSONResponse

if TYPE_CHECKING:
    from billfold.request import Request
    from billfold.services import MonthsService
    from billfold.services.months import Kind


class OccurrenceHandlers:
    def __init__(self, months: MonthsService, kind: Kind) -> None:
        self.months = months
        self.kind = kind

    def _target(self, request: Request) -> tuple[str, str, str]:
        return (
            month_of(request),
            after(request, self.kind, "instance id"),
            after(request, "occurrences", "occurrence id"),
        )

    async def close(self, request: Request) -> JSONResponse:
        month, instance_id, occurrence_id = self._target(request)
        instance = await self.months.set_occurrence_closed(self.kind, month, instance_id, occurrence_id, closed=True)
        return JSONResponse(instance)

    async def reopen(self, request: Request) -> JSONResponse:
        month, instance_id, occurrence_id = self._target(request)
        instance = await self.months.set_occurrence_closed(self.kind, month, instance_id, occurrence_id, closed=False)
        return JSONResponse(instance)

    async def add_payment(self, request: Request) -> JSONResponse:
        month, instance_id, occurrence_id = self._target(request)
        body = await body_of(request)
        instance = await self.months.add_occurrence_payment(month, instance_id, occurrence_id, body)
        return JSONResponse(instance, status_code=201)

    async def remove_payment(self, request: Request) -> JSONResponse:
        month, instance_id, occurrence_id = self._target(request)
        payment_id = after(request, "payments", "payment id")
        instance = await self.months.remove_occurrence_payment(month, instance_id, occurrence_id, payment_id)
        return JSONResponse(instance)
