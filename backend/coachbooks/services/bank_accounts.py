from __future__ import annotations

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from coachbooks.core.errors import LedgerNotFoundError
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.bank_account import BankAccount
from coachbooks.models.transaction import Transaction
from coachbooks.services.audit import record_event
from coachbooks.services.journal import calculate_account_balance
from coachbooks.services.validation import validate_currency


def create_bank_account(
    s: Session,
    account_name: str,
    currency: str,
    created_by: str,
    account_type: str = "BANK",
    bank_name: str | None = None,
    country: str | None = None,
    iban: str | None = None,
    is_admin_owned: bool = True,
) -> BankAccount:
    validate_currency(currency)

    def work() -> BankAccount:
        acc = BankAccount(
            account_name=account_name.strip(),
            account_type=account_type,
            bank_name=bank_name,
            currency=currency,
            country=country,
            iban=iban,
            is_active=True,
            is_admin_owned=is_admin_owned,
        )
        s.add(acc)
        s.flush()
        record_event(s, actor=created_by, action="account.create", entity_type="bank_account", entity_id=acc.id,
                     details={"account_name": acc.account_name, "currency": currency})
        return acc

    return run_atomic(s, work)


def set_account_active(s: Session, account_id: int, is_active: bool, actor: str) -> BankAccount:
    # Currency is immutable; only the active flag may change.
    acc = s.execute(select(BankAccount).where(BankAccount.id == account_id)).scalar_one_or_none()
    if acc is None:
        raise LedgerNotFoundError(f"Account {account_id} not found", code="account_not_found")

    def work() -> BankAccount:
        acc.is_active = is_active
        s.add(acc)
        record_event(s, actor=actor, action="account.activate" if is_active else "account.deactivate",
                     entity_type="bank_account", entity_id=acc.id)
        return acc

    return run_atomic(s, work)


def _transaction_count(s: Session, account_id: int) -> int:
    return int(
        s.execute(
            select(func.count())
            .select_from(Transaction)
            .where(or_(Transaction.source_account_id == account_id, Transaction.destination_account_id == account_id))
        ).scalar_one()
    )


def accounts_overview(s: Session, currency: str | None = None, is_active: bool | None = None) -> dict:
    q = select(BankAccount)
    if currency:
        q = q.where(BankAccount.currency == currency)
    if is_active is not None:
        q = q.where(BankAccount.is_active.is_(is_active))
    q = q.order_by(BankAccount.is_admin_owned.desc(), BankAccount.currency.asc(), BankAccount.account_name.asc())

    accounts = []
    totals: dict[str, int] = {}
    for acc in s.execute(q).scalars().all():
        balance = calculate_account_balance(s, acc.id)
        accounts.append(
            {
                "id": acc.id,
                "account_name": acc.account_name,
                "account_type": acc.account_type,
                "bank_name": acc.bank_name,
                "currency": acc.currency,
                "country": acc.country,
                "is_active": acc.is_active,
                "is_admin_owned": acc.is_admin_owned,
                "balance": balance,
                "transaction_count": _transaction_count(s, acc.id),
            }
        )
        totals[acc.currency] = totals.get(acc.currency, 0) + balance

    return {
        "accounts": accounts,
        "totals": totals,
        "summary": {
            "total_accounts": len(accounts),
            "active_accounts": sum(1 for a in accounts if a["is_active"]),
        },
    }
