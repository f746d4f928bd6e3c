from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Literal

from coachbooks.schemas.common import Currency
from coachbooks.schemas.operation import OperationOut

Frequency = Literal["MONTHLY", "QUARTERLY", "YEARLY"]

class RecurringExpenseCreate(BaseModel):
    name: str
    category: str
    amount: int
    currency: Currency = "EUR"
    frequency: Frequency
    next_due_date: datetime
    supplier: str | None = None
    paying_account_id: int | None = None
    notes: str | None = None

    @field_validator("name", "category")
    @classmethod
    def required_text(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

class RecurringExpenseUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    amount: int | None = None
    frequency: Frequency | None = None
    next_due_date: datetime | None = None
    supplier: str | None = None
    paying_account_id: int | None = None
    is_active: bool | None = None
    notes: str | None = None

class RecurringExpensePay(BaseModel):
    payment_date: datetime | None = None
    paying_account_id: int | None = None
    notes: str | None = None

class RecurringExpenseOut(BaseModel):
    id: int
    name: str
    supplier: str | None
    category: str
    amount: int
    currency: str
    frequency: str
    next_due_date: datetime
    last_paid_date: datetime | None
    paying_account_id: int | None
    is_active: bool
    notes: str | None
    created_by: str
    created_at: datetime | None

    class Config:
        from_attributes = True

class RecurringExpensesSummary(BaseModel):
    total_count: int
    active_count: int
    monthly_totals_by_currency: dict[str, int]
    due_this_month: int
    due_this_month_total: dict[str, int]

class RecurringExpensesList(BaseModel):
    recurring_expenses: list[RecurringExpenseOut]
    summary: RecurringExpensesSummary

class RecurringExpensePaid(OperationOut):
    expense_id: int
    recurring_expense: RecurringExpenseOut
