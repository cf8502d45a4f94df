"""Ad-hoc (one-off) bills and incomes: ``/api/months/<month>/adhoc/<kind>[/<id>[/make-regular]]``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from billfold.api._paths import after, body_of, month_of
from billfold.response import JSONResponse

if TYPE_CHECKING:
    from billfold.request import Request
    from billfold.services import MonthsService
    from billfold.services.months import Kind


class AdhocHandlers:
    def __init__(self, months: MonthsService, kind: Kind) -> None:
        self.months = months
        self.kind = kind

    async def create(self, request: Request) -> JSONResponse:
        month = month_of(request)
        instance = await self.months.create_adhoc(self.kind, month, await body_of(request))
        return JSONResponse(instance, status_code=201)

    async def update(self, request: Request) -> JSONResponse:
        month = month_of(request)
        instance_id = after(request, self.kind, "ad-hoc id")
        body = await body_of(request)
        return JSONResponse(await self.months.update_adhoc(self.kind, month, instance_id, body))

    async def delete(self, request: Request) -> None:
        await self.months.delete_adhoc(self.kind, month_of(request), after(request, self.kind, "ad-hoc id"))

    async def make_regular(self, request: Request) -> JSONResponse:
        month = month_of(request)
        instance_id = after(request, self.kind, "ad-hoc id")
        body = await body_of(request)
        return JSONResponse(await self.months.make_regular(self.kind, month, instance_id, body))
