"""Variable expenses: ``/api/months/<month>/expenses[/<id>]``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from billfold.api._paths import after, body_of, month_of
from billfold.response import JSONResponse

if TYPE_CHECKING:
    from billfold.request import Request
    from billfold.services import MonthsService


class ExpenseHandlers:
    def __init__(self, months: MonthsService) -> None:
        self.months = months

    async def list(self, request: Request) -> JSONResponse:
        return JSONResponse(await self.months.list_expenses(month_of(request)))

    async def create(self, request: Request) -> JSONResponse:
        month = month_of(request)
        expense = await self.months.create_expense(month, await body_of(request))
        return JSONResponse(expense, status_code=201)

    async def update(self, request: Request) -> JSONResponse:
        month = month_of(request)
        expense_id = after(request, "expenses", "expense id")
        return JSONResponse(await self.months.update_expense(month, expense_id, await body_of(request)))

    async def delete(self, request: Request) -> None:
        await self.months.delete_expense(month_of(request), after(request, "expenses", "expense id"))
