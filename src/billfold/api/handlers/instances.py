"""Bill and income instances of a month, and payments on bill instances.

Paths look like ``/api/months/<month>/<bills|incomes>/<id>[/<action>]`` and
``/api/months/<month>/bills/<id>/payments[/<payment id>]``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from billfold.api._paths import after, body_of, month_of
from billfold.response import JSONResponse

if TYPE_CHECKING:
    from billfold.request import Request
    from billfold.services import MonthsService
    from billfold.services.months import Kind


class InstanceHandlers:
    def __init__(self, months: MonthsService, kind: Kind) -> None:
        self.months = months
        self.kind = kind

    def _target(self, request: Request) -> tuple[str, str]:
        return month_of(request), after(request, self.kind, "instance id")

    async def update(self, request: Request) -> JSONResponse:
        month, instance_id = self._target(request)
        body = await body_of(request)
        amount = body.get("expected_amount", body.get("amount"))
        return JSONResponse(await self.months.update_expected_amount(self.kind, month, instance_id, amount))

    async def reset(self, request: Request) -> JSONResponse:
        month, instance_id = self._target(request)
        return JSONResponse(await self.months.reset_instance(self.kind, month, instance_id))

    async def toggle_paid(self, request: Request) -> JSONResponse:
        month, instance_id = self._target(request)
        return JSONResponse(await self.months.toggle_closed(self.kind, month, instance_id))


class PaymentHandlers:
    def __init__(self, months: MonthsService) -> None:
        self.months = months

    async def list(self, request: Request) -> JSONResponse:
        month = month_of(request)
        payments = await self.months.list_payments(month, after(request, "bills", "bill instance id"))
        return JSONResponse({"payments": payments, "count": len(payments)})

    async def add(self, request: Request) -> JSONResponse:
        month = month_of(request)
        instance_id = after(request, "bills", "bill instance id")
        instance = await self.months.add_payment(month, instance_id, await body_of(request))
        return JSONResponse(instance, status_code=201)

    async def update(self, request: Request) -> JSONResponse:
        month = month_of(request)
        instance_id = after(request, "bills", "bill instance id")
        payment_id = after(request, "payments", "payment id")
        body = await body_of(request)
        return JSONResponse(await self.months.update_payment(month, instance_id, payment_id, body))

    async def delete(self, request: Request) -> JSONResponse:
        month = month_of(request)
        instance_id = after(request, "bills", "bill instance id")
        payment_id = after(request, "payments", "payment id")
        return JSONResponse(await self.months.remove_payment(month, instance_id, payment_id))
