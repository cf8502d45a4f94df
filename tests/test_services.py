"""Tests for schedules and the month service below the HTTP layer."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from billfold.errors import ConflictError, NotFoundError, ReadOnlyError, ValidationError
from billfold.services import Services
from billfold.services.months import schedule
from billfold.storage import JsonStore

MONTH = "2025-02"


@pytest.fixture
def services(tmp_path: Path) -> Services:
    store = JsonStore(tmp_path)
    store.ensure_layout()
    return Services.create(store)


# =====================================================================
# Schedules
# =====================================================================


class TestSchedule:
    def test_monthly_is_one_date(self) -> None:
        assert schedule("monthly", MONTH, 10) == [date(2025, 2, 10)]

    def test_day_clamps_to_month_end(self) -> None:
        assert schedule("monthly", MONTH, 31) == [date(2025, 2, 28)]
        assert schedule("monthly", "2024-02", 31) == [date(2024, 2, 29)]

    def test_missing_day_is_the_first(self) -> None:
        assert schedule("semi_annually", MONTH, None) == [date(2025, 2, 1)]

    def test_weekly(self) -> None:
        assert [d.day for d in schedule("weekly", MONTH, 3)] == [3, 10, 17, 24]

    def test_bi_weekly(self) -> None:
        assert [d.day for d in schedule("bi_weekly", "2025-01", 2)] == [2, 16, 30]


# =====================================================================
# Months
# =====================================================================


async def _bill(services: Services, **fields: object):
    source = await services.sources.create({"name": "Checking", "type": "bank_account", "balance": 1000})
    return await services.bills.create({"name": "Rent", "amount": 900, "payment_source_id": source.id, **fields})


@pytest.mark.asyncio
async def test_generate_skips_inactive_items(services: Services) -> None:
    await _bill(services)
    await _bill(services, name="Old", is_active=False)
    data = await services.months.generate(MONTH)
    assert [i.name for i in data.bill_instances] == ["Rent"]

    with pytest.raises(ConflictError):
        await services.months.generate(MONTH)


@pytest.mark.asyncio
async def test_generate_rejects_bad_month(services: Services) -> None:
    with pytest.raises(ValidationError, match="YYYY-MM"):
        await services.months.generate("2025-1")
    with pytest.raises(ValidationError, match="YYYY-MM"):
        await services.months.generate("2025-01\n")
    assert await services.months.list_months() == []


@pytest.mark.asyncio
async def test_get_missing_month(services: Services) -> None:
    with pytest.raises(NotFoundError, match="Month with id 2031-05 not found"):
        await services.months.get("2031-05")


@pytest.mark.asyncio
async def test_expected_amount_spreads_over_open_occurrences(services: Services) -> None:
    await _bill(services, amount=100, billing_period="weekly", day_of_month=3)
    data = await services.months.generate(MONTH)
    instance = data.bill_instances[0]
    assert instance.expected_amount == 400

    first = instance.occurrences[0]
    await services.months.set_occurrence_closed("bills", MONTH, instance.id, first.id, closed=True)
    updated = await services.months.update_expected_amount("bills", MONTH, instance.id, 1002)
    assert [o.expected_amount for o in updated.occurrences] == [100, 302, 300, 300]
    assert updated.expected_amount == 1002
    assert updated.is_default is False


@pytest.mark.asyncio
async def test_negative_amount_rejected(services: Services) -> None:
    await _bill(services)
    instance = (await services.months.generate(MONTH)).bill_instances[0]
    with pytest.raises(ValidationError, match="non-negative"):
        await services.months.update_expected_amount("bills", MONTH, instance.id, -5)


@pytest.mark.asyncio
async def test_closing_every_occurrence_closes_the_instance(services: Services) -> None:
    await _bill(services)
    instance = (await services.months.generate(MONTH)).bill_instances[0]
    updated = await services.months.set_occurrence_closed(
        "bills", MONTH, instance.id, instance.occurrences[0].id, closed=True
    )
    assert updated.is_closed is True
    assert updated.closed_date is not None


@pytest.mark.asyncio
async def test_read_only_month_blocks_edits_but_can_unlock(services: Services) -> None:
    await _bill(services)
    instance = (await services.months.generate(MONTH)).bill_instances[0]
    await services.months.toggle_read_only(MONTH)

    with pytest.raises(ReadOnlyError):
        await services.months.toggle_closed("bills", MONTH, instance.id)
    with pytest.raises(ReadOnlyError):
        await services.months.make_regular("bills", MONTH, instance.id, {})

    data = await services.months.toggle_read_only(MONTH)
    assert data.is_read_only is False


@pytest.mark.asyncio
async def test_sync_is_idempotent(services: Services) -> None:
    await _bill(services)
    await services.months.generate(MONTH)
    first = await services.months.sync(MONTH)
    second = await services.months.sync(MONTH)
    assert len(first.bill_instances) == len(second.bill_instances) == 1


@pytest.mark.asyncio
async def test_list_months_summarises_each(services: Services) -> None:
    await _bill(services)
    await services.months.generate("2025-03")
    await services.months.generate(MONTH)
    summaries = await services.months.list_months()
    assert [s.month for s in summaries] == [MONTH, "2025-03"]
    assert summaries[0].bills.expected == 900
