from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal

from coachbooks.schemas.common import Currency

class TransferBody(BaseModel):
    source_account_id: int
    destination_account_id: int
    amount: int
    currency: Currency
    date: datetime | None = None
    description: str | None = None
    notes: str | None = None

class FxExchangeBody(BaseModel):
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
