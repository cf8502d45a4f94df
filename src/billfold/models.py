"""Domain models. Money is always integer cents."""

from __future__ import annotations

import re
import uuid
from datetime import UTC, date, datetime
from typing import Literal, TypeVar

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from billfold.errors import ValidationError

MONTH_RE = re.compile(r"\d{4}-(0[1-9]|1[0-2])")

PaymentSourceType = Literal["bank_account", "credit_card", "line_of_credit", "cash"]
BillingPeriod = Literal["monthly", "bi_weekly", "weekly", "semi_annually"]

M = TypeVar("M", bound="BaseModel")


def new_id() -> str:
    return str(uuid.uuid4())


def now() -> str:
    return datetime.now(UTC).isoformat()


def today() -> str:
    return date.today().isoformat()


def check_month(month: str) -> str:
    """Return *month* if it looks like ``YYYY-MM``, else raise a 400."""
    if not MONTH_RE.fullmatch(month):
        msg = f"Invalid month format {month!r}. Expected YYYY-MM"
        raise ValidationError(msg, field="month")
    return month


class Entity(BaseModel):
    id: str = Field(default_factory=new_id)
    created_at: str = Field(default_factory=now)
    updated_at: str = Field(default_factory=now)


class PaymentSource(Entity):
    name: str = Field(min_length=1)
    type: PaymentSourceType
    balance: int = 0
    is_active: bool = True
    exclude_from_leftover: bool = False


class Recurring(Entity):
    """Shared shape of a bill or an income."""

    name: str = Field(min_length=1)
    amount: int = Field(ge=0)
    billing_period: BillingPeriod = "monthly"
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    payment_source_id: str
    category_id: str | None = None
    is_active: bool = True


class Bill(Recurring):
    pass


class Income(Recurring):
    pass


class Payment(BaseModel):
    id: str = Field(default_factory=new_id)
    amount: int = Field(gt=0)
    date: str = Field(default_factory=today)
    payment_source_id: str | None = None
    created_at: str = Field(default_factory=now)


class Occurrence(Entity):
    sequence: int = 1
    expected_date: str
    expected_amount: int
    is_closed: bool = False
    closed_date: str | None = None
    payments: list[Payment] = Field(default_factory=list)
    is_adhoc: bool = False

    @property
    def paid(self) -> int:
        return sum(p.amount for p in self.payments)


class Instance(Entity):
    """One month's copy of a bill or income (or an ad-hoc item)."""

    month: str
    billing_period: str = "monthly"
    expected_amount: int = 0
    occurrences: list[Occurrence] = Field(default_factory=list)
    is_default: bool = True
    is_closed: bool = False
    is_adhoc: bool = False
    closed_date: str | None = None
    name: str | None = None
    category_id: str | None = None
    payment_source_id: str | None = None

    @property
    def actual_amount(self) -> int:
        return sum(o.paid for o in self.occurrences)

    def refresh(self) -> None:
        """Recompute totals and the closed flag from the occurrences."""
        self.expected_amount = sum(o.expected_amount for o in self.occurrences)
        closed = bool(self.occurrences) and all(o.is_closed for o in self.occurrences)
        if closed and not self.is_closed:
            self.closed_date = today()
        elif not closed:
            self.closed_date = None
        self.is_closed = closed
        self.updated_at = now()


class BillInstance(Instance):
    bill_id: str | None = None


class IncomeInstance(Instance):
    income_id: str | None = None


class VariableExpense(Entity):
    name: str = Field(min_length=1)
    amount: int = Field(ge=0)
    payment_source_id: str
    month: str


class MonthlyData(BaseModel):
    month: str
    bill_instances: list[BillInstance] = Field(default_factory=list)
    income_instances: list[IncomeInstance] = Field(default_factory=list)
    variable_expenses: list[VariableExpense] = Field(default_factory=list)
    bank_balances: dict[str, int] = Field(default_factory=dict)
    is_read_only: bool = False
    created_at: str = Field(default_factory=now)
    updated_at: str = Field(default_factory=now)

    @field_validator("month")
    @classmethod
    def _month_format(cls, value: str) -> str:
        if not MONTH_RE.fullmatch(value):
            msg = "month must be YYYY-MM"
            raise ValueError(msg)
        return value


class Totals(BaseModel):
    expected: int
    actual: int
    remaining: int


class MonthSummary(BaseModel):
    month: str
    bills: Totals
    incomes: Totals
    variable_expenses: int
    bank_balance_total: int
    leftover: int
    is_read_only: bool


def parse_model(model: type[M], data: object) -> M:
    """Validate *data* as *model*, turning pydantic errors into a 400."""
    if not isinstance(data, dict):
        msg = "Request body must be a JSON object"
        raise ValidationError(msg)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        msg = f"{field}: {first['msg']}" if field else first["msg"]
        raise ValidationError(msg, field=field) from exc
