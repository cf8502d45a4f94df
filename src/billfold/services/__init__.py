"""CRUD services over the JSON store."""

from __future__ import annotations

from dataclasses import dataclass

from billfold.models import Bill, Income, PaymentSource
from billfold.services.entities import EntityService
from billfold.services.months import MonthsService
from billfold.storage import JsonStore

__all__ = ["EntityService", "MonthsService", "Services"]


@dataclass(frozen=True, slots=True)
class Services:
    """Every service the handlers need, wired to one store."""

    store: JsonStore
    sources: EntityService[PaymentSource]
    bills: EntityService[Bill]
    incomes: EntityService[Income]
    months: MonthsService

    @classmethod
    def create(cls, store: JsonStore) -> Services:
        sources = EntityService(store, "payment-sources", PaymentSource, "Payment source")
        bills = EntityService(store, "bills", Bill, "Bill")
        incomes = EntityService(store, "incomes", Income, "Income")
        return cls(
            store=store,
            sources=sources,
            bills=bills,
            incomes=incomes,
            months=MonthsService(store, bills, incomes, sources),
        )
