from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy import select

from coachbooks.api.deps import db, acting_user
from coachbooks.models.bank_account import BankAccount
from coachbooks.schemas.bank_account import (
    AccountBalanceOut,
    AccountsOverview,
    BankAccountActive,
    BankAccountCreate,
    BankAccountOut,
)
from coachbooks.schemas.common import Currency
from coachbooks.services.bank_accounts import accounts_overview, create_bank_account, set_account_active
from coachbooks.services.journal import calculate_account_balance, calculate_totals_by_currency

router = APIRouter(prefix="/bank-accounts", tags=["bank-accounts"])


@router.get("", response_model=AccountsOverview)
def list_accounts(
    currency: Currency | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    s: Session = Depends(db),
):
    return accounts_overview(s, currency=currency, is_active=is_active)


@router.post("", response_model=BankAccountOut)
def create_account(body: BankAccountCreate, s: Session = Depends(db), user: str = Depends(acting_user)):
    return create_bank_account(
        s,
        account_name=body.account_name,
        currency=body.currency,
        created_by=user,
        account_type=body.account_type,
        bank_name=body.bank_name,
        country=body.country,
        iban=body.iban,
        is_admin_owned=body.is_admin_owned,
    )


@router.get("/totals", response_model=dict[str, int])
def totals(s: Session = Depends(db)):
    return calculate_totals_by_currency(s)


@router.get("/{account_id}/balance", response_model=AccountBalanceOut)
def balance(account_id: int, s: Session = Depends(db)):
    acc = s.execute(select(BankAccount).where(BankAccount.id == account_id)).scalar_one_or_none()
    if acc is None:
        raise HTTPException(status_code=404, detail="account_not_found")
    return {"account_id": acc.id, "currency": acc.currency, "balance": calculate_account_balance(s, acc.id)}


@router.patch("/{account_id}", response_model=BankAccountOut)
def set_active(account_id: int, body: BankAccountActive, s: Session = Depends(db), user: str = Depends(acting_user)):
    return set_account_active(s, account_id, body.is_active, actor=user)
