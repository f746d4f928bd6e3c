"""Transaction journal: the single place where ledger entries are written.

Entries are append-only. Each entry type touches a fixed account slot:

    payment received (student/mentor/professor)   destination
    expense, mission payout, distribution         source
    transfer                                      source + destination
    FX leg 1 / leg 2                              source / destination (leg 2 linked to leg 1)

Balances are never stored; they are re-aggregated from the entries on read.
"""
from __future__ import annotations

import logging

from sqlalchemy import select, func, or_, update
from sqlalchemy.orm import Session

from coachbooks.core.config import settings
from coachbooks.core.constants import (
    CURRENCIES,
    DISTRIBUTION,
    EXPENSE,
    FX_EXCHANGE,
    MENTOR_PAYMENT,
    PROFESSOR_PAYMENT,
    STUDENT_PAYMENT,
    TRANSFER,
)
from coachbooks.core.errors import LedgerNotFoundError, LedgerValidationError
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.bank_account import BankAccount
from coachbooks.models.mission import Mission
from coachbooks.models.transaction import Transaction
from coachbooks.schemas.transaction import (
    FxExchangeCreate,
    TransactionCreate,
    TransactionFilters,
    TransactionOut,
    TransferCreate,
)
from coachbooks.services.audit import record_event
from coachbooks.services.numbering import generate_transaction_number
from coachbooks.services.validation import validate_mission_payment, validate_positive_amount
from coachbooks.utils.money import describe_amount
from coachbooks.utils.timezone import naive_now, to_business_naive

logger = logging.getLogger(__name__)

_SOURCE_ONLY = (EXPENSE, DISTRIBUTION)


def _check_slots(p: TransactionCreate) -> None:
    src, dst = p.source_account_id, p.destination_account_id
    if src is None and dst is None:
        raise LedgerValidationError("Transaction requires a source or destination account", code="missing_account")
    if p.type in _SOURCE_ONLY and (src is None or dst is not None):
        raise LedgerValidationError(f"{p.type} transactions debit a source account only", code="invalid_account_slots")
    if p.type == TRANSFER:
        if src is None or dst is None:
            raise LedgerValidationError("Transfer requires both source and destination accounts", code="invalid_account_slots")
        if src == dst:
            raise LedgerValidationError("Transfer source and destination accounts must differ", code="same_account")


def create_transaction(s: Session, params: TransactionCreate) -> Transaction:
    """Mint a number and stage one entry in the current unit of work (no commit)."""
    _check_slots(params)

    t = Transaction(transaction_number=generate_transaction_number(s), **params.model_dump())
    s.add(t)
    s.flush()

    record_event(
        s,
        actor=params.created_by,
        action=f"journal.{params.type.lower()}",
        entity_type="transaction",
        entity_id=t.id,
        reference=t.transaction_number,
        details={
            "amount": t.amount,
            "currency": t.currency,
            "source_account_id": t.source_account_id,
            "destination_account_id": t.destination_account_id,
        },
    )
    logger.info(
        "journal %s %s %s src=%s dst=%s",
        t.transaction_number,
        t.type,
        describe_amount(t.amount, t.currency),
        t.source_account_id,
        t.destination_account_id,
    )
    return t


def _payment_type(payment) -> str:
    if getattr(payment, "mentor_id", None):
        return MENTOR_PAYMENT
    if getattr(payment, "professor_id", None):
        return PROFESSOR_PAYMENT
    return STUDENT_PAYMENT


def payment_entry(payment, created_by: str) -> TransactionCreate:
    if not payment.bank_account_id:
        raise LedgerValidationError("Payment must have a receiving bank account", code="missing_receiving_account")

    return TransactionCreate(
        date=payment.payment_date,
        type=_payment_type(payment),
        amount=payment.amount,
        currency=payment.currency,
        destination_account_id=payment.bank_account_id,
        payment_id=payment.id,
        student_id=payment.student_id,
        mentor_id=payment.mentor_id,
        professor_id=payment.professor_id,
        description=f"Payment received - {describe_amount(payment.amount, payment.currency)}",
        notes=payment.notes,
        created_by=created_by,
    )


def create_payment_transaction(s: Session, payment, created_by: str) -> Transaction:
    params = payment_entry(payment, created_by)
    return run_atomic(s, lambda: create_transaction(s, params))


def expense_entry(expense, created_by: str) -> TransactionCreate:
    if not expense.paying_account_id:
        raise LedgerValidationError("Expense must have a paying account", code="missing_paying_account")

    return TransactionCreate(
        date=expense.expense_date,
        type=EXPENSE,
        amount=expense.amount,
        currency=expense.currency,
        source_account_id=expense.paying_account_id,
        expense_id=expense.id,
        student_id=expense.student_id,
        description=expense.description or f"Expense - {expense.category}",
        notes=f"Supplier: {expense.supplier}" if expense.supplier else None,
        created_by=created_by,
    )


def create_expense_transaction(s: Session, expense, created_by: str) -> Transaction:
    params = expense_entry(expense, created_by)
    return run_atomic(s, lambda: create_transaction(s, params))


def create_mission_payment_transaction(s: Session, mission, payment_account_id: int, created_by: str) -> Transaction:
    """Pay out a validated mission and mark it paid in the same unit of work."""
    validate_mission_payment(mission)

    def work() -> Transaction:
        now = naive_now()
        # Claim the mission first: a concurrent payer that loaded it before our commit matches no row.
        claimed = s.execute(
            update(Mission)
            .where(Mission.id == mission.id, Mission.status == "VALIDATED", Mission.paid_at.is_(None))
            .values(paid_at=now)
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed != 1:
            raise LedgerValidationError(f'Mission "{mission.title}" has already been paid', code="mission_already_paid")

        t = create_transaction(
            s,
            TransactionCreate(
                date=now,
                type=MENTOR_PAYMENT if mission.mentor_id else PROFESSOR_PAYMENT,
                amount=mission.amount,
                currency=mission.currency,
                source_account_id=payment_account_id,
                mission_id=mission.id,
                mentor_id=mission.mentor_id,
                professor_id=mission.professor_id,
                student_id=mission.student_id,
                description=mission.title,
                notes=mission.notes,
                created_by=created_by,
            ),
        )
        mission.paid_at = now
        s.add(mission)
        s.flush()
        return t

    return run_atomic(s, work)


def _require_active_account(s: Session, account_id: int, role: str) -> BankAccount:
    acc = s.execute(select(BankAccount).where(BankAccount.id == account_id)).scalar_one_or_none()
    if acc is None or not acc.is_active:
        raise LedgerValidationError(f"{role} account not found or inactive", code=f"{role.lower()}_account_invalid")
    return acc


def _require_currency(acc: BankAccount, role: str, currency: str, what: str) -> None:
    if acc.currency != currency:
        raise LedgerValidationError(
            f'{role} account "{acc.account_name}" currency ({acc.currency}) does not match {what} currency ({currency})',
            code="currency_mismatch",
        )


def create_fx_transactions(s: Session, params: FxExchangeCreate) -> tuple[Transaction, Transaction]:
    """Write both FX legs atomically; the second leg links back to the first."""
    if params.source_currency == params.destination_currency:
        raise LedgerValidationError(
            "FX exchange requires different currencies. Use a transfer for same currency.",
            code="fx_same_currency",
        )
    validate_positive_amount(params.source_amount, "source_amount")
    validate_positive_amount(params.destination_amount, "destination_amount")
    if params.exchange_rate <= 0:
        raise LedgerValidationError(f"exchange_rate must be positive (got: {params.exchange_rate})", code="invalid_exchange_rate")

    src = _require_active_account(s, params.source_account_id, "Source")
    dst = _require_active_account(s, params.destination_account_id, "Destination")
    _require_currency(src, "Source", params.source_currency, "source")
    _require_currency(dst, "Destination", params.destination_currency, "destination")

    when = params.date or naive_now()
    description = params.description or f"FX {params.source_currency} -> {params.destination_currency}"

    def work() -> tuple[Transaction, Transaction]:
        leg1 = create_transaction(
            s,
            TransactionCreate(
                date=when,
                type=FX_EXCHANGE,
                amount=params.source_amount,
                currency=params.source_currency,
                source_account_id=params.source_account_id,
                exchange_rate=params.exchange_rate,
                fx_fees=params.fx_fees,
                description=description,
                notes=params.notes,
                created_by=params.created_by,
            ),
        )
        leg2 = create_transaction(
            s,
            TransactionCreate(
                date=when,
                type=FX_EXCHANGE,
                amount=params.destination_amount,
                currency=params.destination_currency,
                destination_account_id=params.destination_account_id,
                linked_transaction_id=leg1.id,
                exchange_rate=params.exchange_rate,
                description=description,
                notes=params.notes,
                created_by=params.created_by,
            ),
        )
        return leg1, leg2

    return run_atomic(s, work)


def create_transfer_transaction(s: Session, params: TransferCreate) -> Transaction:
    validate_positive_amount(params.amount)
    src = _require_active_account(s, params.source_account_id, "Source")
    dst = _require_active_account(s, params.destination_account_id, "Destination")
    _require_currency(src, "Source", params.currency, "transfer")
    _require_currency(dst, "Destination", params.currency, "transfer")

    tx = TransactionCreate(
        date=params.date or naive_now(),
        type=TRANSFER,
        amount=params.amount,
        currency=params.currency,
        source_account_id=params.source_account_id,
        destination_account_id=params.destination_account_id,
        description=params.description or f"Transfer {describe_amount(params.amount, params.currency)}",
        notes=params.notes,
        created_by=params.created_by,
    )
    return run_atomic(s, lambda: create_transaction(s, tx))


def distribution_entry(
    distribution_id: int, source_account_id: int, amount: int, currency: str, created_by: str, date=None
) -> TransactionCreate:
    # Money leaves the business entirely: no destination account.
    return TransactionCreate(
        date=date or naive_now(),
        type=DISTRIBUTION,
        amount=amount,
        currency=currency,
        source_account_id=source_account_id,
        distribution_id=distribution_id,
        description=f"Distribution {describe_amount(amount, currency)}",
        created_by=created_by,
    )


def create_distribution_transaction(
    s: Session,
    distribution_id: int,
    source_account_id: int,
    amount: int,
    currency: str,
    created_by: str,
) -> Transaction:
    params = distribution_entry(distribution_id, source_account_id, amount, currency, created_by)
    return run_atomic(s, lambda: create_transaction(s, params))


def get_transaction(s: Session, transaction_id: int) -> Transaction:
    t = s.execute(select(Transaction).where(Transaction.id == transaction_id)).scalar_one_or_none()
    if t is None:
        raise LedgerNotFoundError(f"Transaction {transaction_id} not found", code="tx_not_found")
    return t


def filter_clauses(f: TransactionFilters) -> list:
    clauses = []
    if f.start_date is not None:
        clauses.append(Transaction.date >= to_business_naive(f.start_date))
    if f.end_date is not None:
        clauses.append(Transaction.date <= to_business_naive(f.end_date))
    if f.currency:
        clauses.append(Transaction.currency == f.currency)
    if f.type:
        clauses.append(Transaction.type == f.type)
    if f.student_id:
        clauses.append(Transaction.student_id == f.student_id)
    if f.mentor_id:
        clauses.append(Transaction.mentor_id == f.mentor_id)
    if f.professor_id:
        clauses.append(Transaction.professor_id == f.professor_id)
    if f.account_id:
        clauses.append(
            or_(Transaction.source_account_id == f.account_id, Transaction.destination_account_id == f.account_id)
        )
    return clauses


def get_transactions(s: Session, filters: TransactionFilters | None = None) -> dict:
    f = filters or TransactionFilters()
    clauses = filter_clauses(f)

    limit = f.limit or settings.journal_default_limit
    limit = max(1, min(limit, settings.journal_max_limit))
    offset = max(0, f.offset)

    total = s.execute(select(func.count()).select_from(Transaction).where(*clauses)).scalar_one()
    rows = (
        s.execute(
            select(Transaction)
            .where(*clauses)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        .scalars()
        .all()
    )

    return {
        "transactions": [TransactionOut.model_validate(t) for t in rows],
        "total": int(total),
        "has_more": offset + len(rows) < total,
    }


def calculate_account_balance(s: Session, account_id: int) -> int:
    incoming = s.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(Transaction.destination_account_id == account_id)
    ).scalar_one()
    outgoing = s.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(Transaction.source_account_id == account_id)
    ).scalar_one()
    return int(incoming or 0) - int(outgoing or 0)


def calculate_totals_by_currency(s: Session) -> dict[str, int]:
    totals: dict[str, int] = {c: 0 for c in CURRENCIES}
    accounts = s.execute(select(BankAccount).where(BankAccount.is_active.is_(True))).scalars().all()
    for acc in accounts:
        totals[acc.currency] = totals.get(acc.currency, 0) + calculate_account_balance(s, acc.id)
    return totals

