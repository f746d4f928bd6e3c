from decimal import Decimal
from datetime import datetime

from pydantic import BaseModel, field_validator

from coachbooks.schemas.common import Currency, TxType


class TransactionCreate(BaseModel):
    date: datetime
    type: TxType
    amount: int
    currency: Currency
    source_account_id: int | None = None
    destination_account_id: int | None = None
    payment_id: int | None = None
    expense_id: int | None = None
    distribution_id: int | None = None
    mission_id: int | None = None
    quote_id: int | None = None
    payment_schedule_id: int | None = None
    student_id: int | None = None
    mentor_id: int | None = None
    professor_id: int | None = None
    linked_transaction_id: int | None = None
    exchange_rate: Decimal | None = None
    fx_fees: int | None = None
    description: str | None = None
    notes: str | None = None
    created_by: str

    @field_validator("amount")
    @classmethod
    def amount_non_negative(cls, v: int):
        if v < 0:
            raise ValueError("amount must be non-negative")
        return v

    @field_validator("description", "notes")
    @classmethod
    def text_trim(cls, v: str | None):
        if v is None:
            return None
        v = v.strip()
        return v or None


class TransferCreate(BaseModel):
    source_account_id: int
    destination_account_id: int
    amount: int
    currency: Currency
    date: datetime | None = None
    description: str | None = None
    notes: str | None = None
    created_by: str


class FxExchangeCreate(BaseModel):
    source_account_id: int
    destination_account_id: int
    source_amount: int
    source_currency: Currency
    destination_amount: int
    destination_currency: Currency
    exchange_rate: Decimal
    fx_fees: int | None = None
    date: datetime | None = None
    description: str | None = None
    notes: str | None = None
    created_by: str


class TransactionFilters(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    currency: Currency | None = None
    type: TxType | None = None
    account_id: int | None = None
    student_id: int | None = None
    mentor_id: int | None = None
    professor_id: int | None = None
    limit: int | None = None
    offset: int = 0


class AccountSummary(BaseModel):
    id: int
    account_name: str
    currency: str

    class Config:
        from_attributes = True


class PartySummary(BaseModel):
    id: int
    name: str
    email: str | None = None

    class Config:
        from_attributes = True


class TransactionOut(BaseModel):
    id: int
    transaction_number: str
    date: datetime
    type: TxType
    amount: int
    currency: Currency
    source_account_id: int | None
    destination_account_id: int | None
    payment_id: int | None
    expense_id: int | None
    distribution_id: int | None
    mission_id: int | None
    quote_id: int | None
    payment_schedule_id: int | None
    student_id: int | None
    mentor_id: int | None
    professor_id: int | None
    linked_transaction_id: int | None
    exchange_rate: Decimal | None
    fx_fees: int | None
    description: str | None
    notes: str | None
    created_by: str
    created_at: datetime | None = None

    source_account: AccountSummary | None = None
    destination_account: AccountSummary | None = None
    student: PartySummary | None = None
    mentor: PartySummary | None = None
    professor: PartySummary | None = None

    class Config:
        from_attributes = True


class TransactionPage(BaseModel):
    transactions: list[TransactionOut]
    total: int
    has_more: bool


class FxExchangeOut(BaseModel):
    from_transaction: TransactionOut
    to_transaction: TransactionOut
