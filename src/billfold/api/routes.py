"""The budget API route table.

Paths are positional: a route registered with ``has_path_param`` matches
requests that insert months and ids into it, as decided by
:data:`billfold.routing.SHAPES`. Handlers re-read those values from the path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple

from billfold.api.handlers.adhoc import AdhocHandlers
from billfold.api.handlers.common import health
from billfold.api.handlers.entities import EntityHandlers
from billfold.api.handlers.expenses import ExpenseHandlers
from billfold.api.handlers.instances import InstanceHandlers, PaymentHandlers
from billfold.api.handlers.months import MonthHandlers
from billfold.api.handlers.occurrences import OccurrenceHandlers

if TYPE_CHECKING:
    from collections.abc import Callable

    from billfold.services import Services


class RouteSpec(NamedTuple):
    path: str
    method: str
    handler: Callable[..., Any]
    has_path_param: bool = False


def build_routes(services: Services) -> list[RouteSpec]:
    """Return every route of the budget API, in registration order."""
    sources = EntityHandlers(services.sources)
    bills = EntityHandlers(services.bills)
    incomes = EntityHandlers(services.incomes)
    months = MonthHandlers(services.months)
    expenses = ExpenseHandlers(services.months)
    payments = PaymentHandlers(services.months)

    routes = [
        RouteSpec("/api/health", "GET", health),
        RouteSpec("/health", "GET", health),
    ]

    for collection, handlers in (
        ("/api/payment-sources", sources),
        ("/api/bills", bills),
        ("/api/incomes", incomes),
    ):
        routes += [
            RouteSpec(collection, "GET", handlers.list),
            RouteSpec(collection, "POST", handlers.create),
            RouteSpec(collection, "PUT", handlers.update, True),
            RouteSpec(collection, "DELETE", handlers.delete, True),
        ]

    routes += [
        RouteSpec("/api/months/generate", "POST", months.generate, True),
        RouteSpec("/api/months/sync", "POST", months.sync, True),
        RouteSpec("/api/months/bank-balances", "PUT", months.update_bank_balances, True),
        RouteSpec("/api/months/summary", "GET", months.summary, True),
        RouteSpec("/api/months/lock", "POST", months.toggle_lock, True),
        RouteSpec("/api/months/bills/payments", "GET", payments.list, True),
        RouteSpec("/api/months/bills/payments", "POST", payments.add, True),
        RouteSpec("/api/months/bills/payments", "PUT", payments.update, True),
        RouteSpec("/api/months/bills/payments", "DELETE", payments.delete, True),
    ]

    for kind in ("bills", "incomes"):
        instances = InstanceHandlers(services.months, kind)
        adhoc = AdhocHandlers(services.months, kind)
        occurrences = OccurrenceHandlers(services.months, kind)
        routes += [
            RouteSpec(f"/api/months/{kind}/reset", "POST", instances.reset, True),
            RouteSpec(f"/api/months/{kind}/paid", "POST", instances.toggle_paid, True),
            RouteSpec(f"/api/months/{kind}", "PUT", instances.update, True),
            RouteSpec(f"/api/months/adhoc/{kind}/make-regular", "POST", adhoc.make_regular, True),
            RouteSpec(f"/api/months/adhoc/{kind}", "POST", adhoc.create, True),
            RouteSpec(f"/api/months/adhoc/{kind}", "PUT", adhoc.update, True),
            RouteSpec(f"/api/months/adhoc/{kind}", "DELETE", adhoc.delete, True),
            RouteSpec(f"/api/months/{kind}/occurrences/close", "POST", occurrences.close, True),
            RouteSpec(f"/api/months/{kind}/occurrences/reopen", "POST", occurrences.reopen, True),
        ]
        if kind == "bills":
            routes += [
                RouteSpec("/api/months/bills/occurrences/payments", "POST", occurrences.add_payment, True),
                RouteSpec("/api/months/bills/occurrences/payments", "DELETE", occurrences.remove_payment, True),
            ]

    routes += [
        RouteSpec("/api/months/expenses", "GET", expenses.list, True),
        RouteSpec("/api/months/expenses", "POST", expenses.create, True),
        RouteSpec("/api/months/expenses", "PUT", expenses.update, True),
        RouteSpec("/api/months/expenses", "DELETE", expenses.delete, True),
        RouteSpec("/api/months", "GET", months.list),
        RouteSpec("/api/months", "GET", months.get, True),
    ]
    return routes
