"""Monthly data: instances, occurrences, payments, expenses and summaries.

Each month lives in ``months/<YYYY-MM>.json``. Writes go through
:meth:`MonthsService._edit`, which loads the month under a per-month lock,
refuses read-only months and saves the result.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from contextlib import asynccontextmanager
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any, Literal

from billfold.errors import ConflictError, NotFoundError, ReadOnlyError, ValidationError
from billfold.models import (
    Bill,
    BillInstance,
    Income,
    IncomeInstance,
    Instance,
    MonthlyData,
    MonthSummary,
    Occurrence,
    Payment,
    PaymentSource,
    Recurring,
    Totals,
    VariableExpense,
    check_month,
    now,
    parse_model,
    today,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from billfold.services.entities import EntityService
    from billfold.storage import JsonStore

logger = logging.getLogger("billfold.services.months")

Kind = Literal["bills", "incomes"]


def schedule(period: str, month: str, day: int | None) -> list[date]:
    """Expected dates of a recurring item inside *month*.

    Days past the end of the month clamp to its last day.
    """
    year, mon = (int(part) for part in month.split("-"))
    last = calendar.monthrange(year, mon)[1]
    first = date(year, mon, min(day or 1, last))
    step = {"weekly": 7, "bi_weekly": 14}.get(period)
    if step is None:
        return [first]
    dates = []
    current = first
    while current.month == mon:
        dates.append(current)
        current += timedelta(days=step)
    return dates


def _occurrences(item: Recurring, month: str) -> list[Occurrence]:
    return [
        Occurrence(sequence=seq, expected_date=when.isoformat(), expected_amount=item.amount)
        for seq, when in enumerate(schedule(item.billing_period, month, item.day_of_month), start=1)
    ]


def _instance_for(kind: Kind, item: Recurring, month: str) -> Instance:
    fields: dict[str, Any] = {
        "month": month,
        "billing_period": item.billing_period,
        "occurrences": _occurrences(item, month),
        "name": item.name,
        "category_id": item.category_id,
        "payment_source_id": item.payment_source_id,
    }
    instance: Instance
    if kind == "bills":
        instance = BillInstance(bill_id=item.id, **fields)
    else:
        instance = IncomeInstance(income_id=item.id, **fields)
    instance.refresh()
    return instance


def _totals(instances: list[Instance]) -> Totals:
    expected = sum(i.expected_amount for i in instances)
    actual = sum(i.actual_amount for i in instances)
    return Totals(expected=expected, actual=actual, remaining=max(expected - actual, 0))


class MonthsService:
    """Operations on month documents."""

    def __init__(
        self,
        store: JsonStore,
        bills: EntityService[Bill],
        incomes: EntityService[Income],
        sources: EntityService[PaymentSource],
    ) -> None:
        self.store = store
        self.bills = bills
        self.incomes = incomes
        self.sources = sources
        self._locks: dict[str, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Month documents
    # ------------------------------------------------------------------

    async def load(self, month: str) -> MonthlyData | None:
        raw = await self.store.read(f"months/{check_month(month)}.json")
        return None if raw is None else MonthlyData.model_validate(raw)

    async def get(self, month: str) -> MonthlyData:
        data = await self.load(month)
        if data is None:
            raise NotFoundError("Month", month)
        return data

    async def save(self, data: MonthlyData) -> None:
        data.updated_at = now()
        await self.store.write(f"months/{data.month}.json", data.model_dump(mode="json"))

    async def list_months(self) -> list[MonthSummary]:
        months = await self.store.list_names("months")
        return [await self.summary(month) for month in months if month[:1].isdigit()]

    @asynccontextmanager
    async def _edit(self, month: str, *, allow_read_only: bool = False) -> AsyncIterator[MonthlyData]:
        lock = self._locks.setdefault(month, asyncio.Lock())
        async with lock:
            data = await self.get(month)
            if data.is_read_only and not allow_read_only:
                raise ReadOnlyError(month)
            yield data
            await self.save(data)

    async def generate(self, month: str) -> MonthlyData:
        check_month(month)
        lock = self._locks.setdefault(month, asyncio.Lock())
        async with lock:
            if await self.load(month) is not None:
                msg = f"Month {month} already exists"
                raise ConflictError(msg)
            data = MonthlyData(month=month)
            await self._add_missing(data)
            data.bank_balances = {
                source.id: source.balance for source in await self.sources.list(active_only=True)
            }
            await self.save(data)
        logger.info(
            "Generated %s with %d bills and %d incomes",
            month,
            len(data.bill_instances),
            len(data.income_instances),
        )
        return data

    async def sync(self, month: str) -> MonthlyData:
        """Add instances for active bills/incomes the month does not have yet."""
        async with self._edit(month) as data:
            added = await self._add_missing(data)
        logger.info("Synced %s, added %d instances", month, added)
        return data

    async def _add_missing(self, data: MonthlyData) -> int:
        added = 0
        have_bills = {i.bill_id for i in data.bill_instances}
        for bill in await self.bills.list(active_only=True):
            if bill.id not in have_bills:
                data.bill_instances.append(_instance_for("bills", bill, data.month))  # type: ignore[arg-type]
                added += 1
        have_incomes = {i.income_id for i in data.income_instances}
        for income in await self.incomes.list(active_only=True):
            if income.id not in have_incomes:
                data.income_instances.append(_instance_for("incomes", income, data.month))  # type: ignore[arg-type]
                added += 1
        return added

    async def update_bank_balances(self, month: str, balances: dict[str, Any]) -> MonthlyData:
        for source_id, value in balances.items():
            if not isinstance(value, int) or isinstance(value, bool):
                msg = f"Balance for {source_id} must be an integer number of cents"
                raise ValidationError(msg, field="bank_balances")
        async with self._edit(month) as data:
            data.bank_balances.update(balances)
        return data

    async def toggle_read_only(self, month: str) -> MonthlyData:
        async with self._edit(month, allow_read_only=True) as data:
            data.is_read_only = not data.is_read_only
        logger.info("Month %s is now %s", month, "locked" if data.is_read_only else "unlocked")
        return data

    async def summary(self, month: str) -> MonthSummary:
        data = await self.get(month)
        excluded = {s.id for s in await self.sources.list() if s.exclude_from_leftover}
        bank_total = sum(v for k, v in data.bank_balances.items() if k not in excluded)
        bills = _totals(data.bill_instances)  # type: ignore[arg-type]
        incomes = _totals(data.income_instances)  # type: ignore[arg-type]
        expenses = sum(e.amount for e in data.variable_expenses)
        return MonthSummary(
            month=data.month,
            bills=bills,
            incomes=incomes,
            variable_expenses=expenses,
            bank_balance_total=bank_total,
            leftover=bank_total + incomes.remaining - bills.remaining - expenses,
            is_read_only=data.is_read_only,
        )

    # ------------------------------------------------------------------
    # Variable expenses
    # ------------------------------------------------------------------

    async def list_expenses(self, month: str) -> list[VariableExpense]:
        return (await self.get(month)).variable_expenses

    async def create_expense(self, month: str, payload: dict[str, Any]) -> VariableExpense:
        expense = parse_model(VariableExpense, {**_writable(payload), "month": month})
        async with self._edit(month) as data:
            data.variable_expenses.append(expense)
        return expense

    async def update_expense(self, month: str, expense_id: str, payload: dict[str, Any]) -> VariableExpense:
        async with self._edit(month) as data:
            for index, expense in enumerate(data.variable_expenses):
                if expense.id == expense_id:
                    merged = {**expense.model_dump(), **_writable(payload), "month": month, "updated_at": now()}
                    data.variable_expenses[index] = updated = parse_model(VariableExpense, merged)
                    break
            else:
                raise NotFoundError("Variable expense", expense_id)
        return updated

    async def delete_expense(self, month: str, expense_id: str) -> None:
        async with self._edit(month) as data:
            before = len(data.variable_expenses)
            data.variable_expenses = [e for e in data.variable_expenses if e.id != expense_id]
            if len(data.variable_expenses) == before:
                raise NotFoundError("Variable expense", expense_id)

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    async def update_expected_amount(self, kind: Kind, month: str, instance_id: str, amount: Any) -> Instance:
        amount = _cents(amount, "amount")
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id)
            open_occurrences = [o for o in instance.occurrences if not o.is_closed] or instance.occurrences
            if not open_occurrences:
                instance.occurrences.append(
                    Occurrence(expected_date=f"{month}-01", expected_amount=amount, is_adhoc=instance.is_adhoc)
                )
            else:
                # Spread the new total over the open occurrences; remainder goes on the first.
                closed_total = sum(o.expected_amount for o in instance.occurrences if o not in open_occurrences)
                share, rest = divmod(max(amount - closed_total, 0), len(open_occurrences))
                for index, occurrence in enumerate(open_occurrences):
                    occurrence.expected_amount = share + (rest if index == 0 else 0)
            instance.is_default = False
            instance.refresh()
        return instance

    async def reset_instance(self, kind: Kind, month: str, instance_id: str) -> Instance:
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id)
            source_id = _source_id(instance)
            if instance.is_adhoc or source_id is None:
                noun = "bill" if kind == "bills" else "income"
                msg = f"Cannot reset ad-hoc {noun} instance - no default {noun} reference"
                raise ValidationError(msg)
            service = self.bills if kind == "bills" else self.incomes
            item = await service.get(source_id)
            instance.occurrences = _occurrences(item, month)
            instance.is_default = True
            instance.refresh()
        return instance

    async def toggle_closed(self, kind: Kind, month: str, instance_id: str) -> Instance:
        """Close every occurrence of an open instance, or reopen a closed one."""
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id)
            close = not instance.is_closed
            for occurrence in instance.occurrences:
                occurrence.is_closed = close
                occurrence.closed_date = today() if close else None
                occurrence.updated_at = now()
            instance.refresh()
        return instance

    # ------------------------------------------------------------------
    # Payments on bill instances
    # ------------------------------------------------------------------

    async def list_payments(self, month: str, instance_id: str) -> list[Payment]:
        instance = _find_instance(await self.get(month), "bills", instance_id)
        return [p for o in instance.occurrences for p in o.payments]

    async def add_payment(self, month: str, instance_id: str, payload: dict[str, Any]) -> Instance:
        payment = parse_model(Payment, _writable(payload))
        async with self._edit(month) as data:
            instance = _find_instance(data, "bills", instance_id)
            if not instance.occurrences:
                msg = "Bill instance has no occurrences to pay"
                raise ValidationError(msg)
            target = next((o for o in instance.occurrences if not o.is_closed), instance.occurrences[-1])
            target.payments.append(payment)
            target.updated_at = now()
            instance.refresh()
        return instance

    async def update_payment(
        self, month: str, instance_id: str, payment_id: str, payload: dict[str, Any]
    ) -> Instance:
        async with self._edit(month) as data:
            instance = _find_instance(data, "bills", instance_id)
            occurrence, index = _find_payment(instance, payment_id)
            merged = {**occurrence.payments[index].model_dump(), **_writable(payload)}
            occurrence.payments[index] = parse_model(Payment, merged)
            instance.refresh()
        return instance

    async def remove_payment(self, month: str, instance_id: str, payment_id: str) -> Instance:
        async with self._edit(month) as data:
            instance = _find_instance(data, "bills", instance_id)
            occurrence, index = _find_payment(instance, payment_id)
            del occurrence.payments[index]
            instance.refresh()
        return instance

    # ------------------------------------------------------------------
    # Ad-hoc items
    # ------------------------------------------------------------------

    async def create_adhoc(self, kind: Kind, month: str, payload: dict[str, Any]) -> Instance:
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            msg = "name is required"
            raise ValidationError(msg, field="name")
        amount = _cents(payload.get("amount"), "amount")
        when = payload.get("date") or f"{month}-01"
        fields: dict[str, Any] = {
            "month": month,
            "name": name.strip(),
            "is_adhoc": True,
            "is_default": False,
            "category_id": payload.get("category_id"),
            "payment_source_id": payload.get("payment_source_id"),
            "occurrences": [Occurrence(expected_date=when, expected_amount=amount, is_adhoc=True)],
        }
        instance: Instance = BillInstance(**fields) if kind == "bills" else IncomeInstance(**fields)
        instance.refresh()
        async with self._edit(month) as data:
            _instances(data, kind).append(instance)
        logger.info("Added ad-hoc %s %s to %s", kind, instance.id, month)
        return instance

    async def update_adhoc(self, kind: Kind, month: str, instance_id: str, payload: dict[str, Any]) -> Instance:
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id, adhoc=True)
            if "name" in payload:
                instance.name = str(payload["name"]).strip() or instance.name
            for key in ("category_id", "payment_source_id"):
                if key in payload:
                    setattr(instance, key, payload[key])
            if "amount" in payload and instance.occurrences:
                instance.occurrences[0].expected_amount = _cents(payload["amount"], "amount")
            instance.refresh()
        return instance

    async def delete_adhoc(self, kind: Kind, month: str, instance_id: str) -> None:
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id, adhoc=True)
            _instances(data, kind).remove(instance)

    async def make_regular(self, kind: Kind, month: str, instance_id: str, payload: dict[str, Any]) -> Instance:
        """Turn an ad-hoc item into a recurring bill/income and link the instance to it."""
        data = await self.get(month)
        if data.is_read_only:
            raise ReadOnlyError(month)
        instance = _find_instance(data, kind, instance_id, adhoc=True)
        service = self.bills if kind == "bills" else self.incomes
        item = await service.create(
            {
                "name": instance.name,
                "amount": instance.expected_amount,
                "payment_source_id": instance.payment_source_id,
                "category_id": instance.category_id,
                **payload,
            }
        )
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id, adhoc=True)
            if isinstance(instance, BillInstance):
                instance.bill_id = item.id
            elif isinstance(instance, IncomeInstance):
                instance.income_id = item.id
            instance.is_adhoc = False
            instance.billing_period = item.billing_period
            instance.refresh()
        return instance

    # ------------------------------------------------------------------
    # Occurrences
    # ------------------------------------------------------------------

    async def set_occurrence_closed(
        self, kind: Kind, month: str, instance_id: str, occurrence_id: str, *, closed: bool
    ) -> Instance:
        async with self._edit(month) as data:
            instance = _find_instance(data, kind, instance_id)
            occurrence = _find_occurrence(instance, occurrence_id)
            occurrence.is_closed = closed
            occurrence.closed_date = today() if closed else None
            occurrence.updated_at = now()
            instance.refresh()
        return instance

    async def add_occurrence_payment(
        self, month: str, instance_id: str, occurrence_id: str, payload: dict[str, Any]
    ) -> Instance:
        payment = parse_model(Payment, _writable(payload))
        async with self._edit(month) as data:
            instance = _find_instance(data, "bills", instance_id)
            occurrence = _find_occurrence(instance, occurrence_id)
            occurrence.payments.append(payment)
            occurrence.updated_at = now()
            instance.refresh()
        return instance

    async def remove_occurrence_payment(
        self, month: str, instance_id: str, occurrence_id: str, payment_id: str
    ) -> Instance:
        async with self._edit(month) as data:
            instance = _find_instance(data, "bills", instance_id)
            occurrence = _find_occurrence(instance, occurrence_id)
            before = len(occurrence.payments)
            occurrence.payments = [p for p in occurrence.payments if p.id != payment_id]
            if len(occurrence.payments) == before:
                raise NotFoundError("Payment", payment_id)
            instance.refresh()
        return instance


# ------------------------------------------------------------------
# Module-level helpers
# ------------------------------------------------------------------


def _writable(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in ("id", "created_at", "updated_at", "month")}


def _cents(value: Any, field: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        msg = f"{field} must be a non-negative integer number of cents"
        raise ValidationError(msg, field=field)
    return value


def _instances(data: MonthlyData, kind: Kind) -> list[Any]:
    return data.bill_instances if kind == "bills" else data.income_instances


def _source_id(instance: Instance) -> str | None:
    if isinstance(instance, BillInstance):
        return instance.bill_id
    if isinstance(instance, IncomeInstance):
        return instance.income_id
    return None


def _find_instance(data: MonthlyData, kind: Kind, instance_id: str, *, adhoc: bool = False) -> Instance:
    label = "Bill instance" if kind == "bills" else "Income instance"
    for instance in _instances(data, kind):
        if instance.id == instance_id:
            if adhoc and not instance.is_adhoc:
                msg = f"{label} {instance_id} is not ad-hoc"
                raise ValidationError(msg)
            return instance
    raise NotFoundError(label, instance_id)


def _find_occurrence(instance: Instance, occurrence_id: str) -> Occurrence:
    for occurrence in instance.occurrences:
        if occurrence.id == occurrence_id:
            return occurrence
    raise NotFoundError("Occurrence", occurrence_id)


def _find_payment(instance: Instance, payment_id: str) -> tuple[Occurrence, int]:
    for occurrence in instance.occurrences:
        for index, payment in enumerate(occurrence.payments):
            if payment.id == payment_id:
                return occurrence, index
    raise NotFoundError("Payment", payment_id)
