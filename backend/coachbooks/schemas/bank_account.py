from pydantic import BaseModel, field_validator
from datetime import datetime

from coachbooks.schemas.common import AccountType, Currency

class BankAccountCreate(BaseModel):
    account_name: str
    currency: Currency
    account_type: AccountType = "BANK"
    bank_name: str | None = None
    country: str | None = None
    iban: str | None = None
    is_admin_owned: bool = True

    @field_validator("account_name")
    @classmethod
    def name_required(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError("account_name is required")
        return v

class BankAccountActive(BaseModel):
    is_active: bool

class BankAccountOut(BaseModel):
    id: int
    account_name: str
    account_type: str
    bank_name: str | None
    currency: str
    country: str | None
    is_active: bool
    is_admin_owned: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class AccountOverviewRow(BaseModel):
    id: int
    account_name: str
    account_type: str
    bank_name: str | None
    currency: str
    country: str | None
    is_active: bool
    is_admin_owned: bool
    balance: int
    transaction_count: int

class AccountsSummary(BaseModel):
    total_accounts: int
    active_accounts: int

class AccountsOverview(BaseModel):
    accounts: list[AccountOverviewRow]
    totals: dict[str, int]
    summary: AccountsSummary

class AccountBalanceOut(BaseModel):
    account_id: int
    currency: str
    balance: int
