"""Month documents: ``/api/months[/<month>[/<action>]]``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from billfold.api._paths import body_of, month_of
from billfold.errors import ValidationError
from billfold.response import JSONResponse

if TYPE_CHECKING:
    from billfold.request import Request
    from billfold.services import MonthsService


class MonthHandlers:
    def __init__(self, months: MonthsService) -> None:
        self.months = months

    async def list(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.months.list_months())

    async def get(self, request: Request) -> JSONResponse:
        month = month_of(request)
        data = await self.months.get(month)
        summary = await self.months.summary(month)
        return JSONResponse({**data.model_dump(mode="json"), "summary": summary})

    async def generate(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.months.generate(month_of(request)), status_code=201)

    async def sync(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.months.sync(month_of(request)))

    async def update_bank_balances(self, request: Request) -> JSONResponse:
        month = month_of(request)
        body = await body_of(request)
        balances = body.get("bank_balances", body)
        if not isinstance(balances, dict):
            msg = "bank_balances must be an object of source id to cents"
            raise ValidationError(msg, field="bank_balances")
        return JSONResponse(await self.months.update_bank_balances(month, balances))

    async def summary(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.months.summary(month_of(request)))

    async def toggle_lock(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.months.toggle_read_only(month_of(request)))
