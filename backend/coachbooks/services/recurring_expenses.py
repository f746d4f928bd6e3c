"""Recurring expense templates (rent, subscriptions, salaries).

A template holds no money. Paying it books a real ``Expense`` and its
``EXPENSE`` journal entry, then moves the due date forward by one period.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from coachbooks.core.constants import RECURRING_FREQUENCY_MONTHS
from coachbooks.core.errors import LedgerNotFoundError, LedgerValidationError
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.expense import Expense
from coachbooks.models.recurring_expense import RecurringExpense
from coachbooks.models.transaction import Transaction
from coachbooks.services.audit import record_event
from coachbooks.services.journal import create_transaction, expense_entry
from coachbooks.services.validation import validate_account_currency, validate_currency, validate_positive_amount
from coachbooks.utils.timezone import add_months, naive_now, to_business_naive, today_business

logger = logging.getLogger(__name__)


def _validate_frequency(frequency: str) -> None:
    if frequency not in RECURRING_FREQUENCY_MONTHS:
        raise LedgerValidationError(
            f"Invalid frequency {frequency!r}. Use MONTHLY, QUARTERLY or YEARLY",
            code="invalid_frequency",
        )


def advance_due_date(due: datetime, frequency: str) -> datetime:
    _validate_frequency(frequency)
    return add_months(due, RECURRING_FREQUENCY_MONTHS[frequency])


def get_recurring_expense(s: Session, recurring_id: int) -> RecurringExpense:
    rec = s.execute(select(RecurringExpense).where(RecurringExpense.id == recurring_id)).scalar_one_or_none()
    if rec is None:
        raise LedgerNotFoundError(f"Recurring expense {recurring_id} not found", code="recurring_expense_not_found")
    return rec


def create_recurring_expense(
    s: Session,
    name: str,
    category: str,
    amount: int,
    currency: str,
    frequency: str,
    next_due_date: datetime,
    created_by: str,
    supplier: str | None = None,
    paying_account_id: int | None = None,
    notes: str | None = None,
) -> RecurringExpense:
    validate_positive_amount(amount)
    validate_currency(currency)
    _validate_frequency(frequency)
    if paying_account_id:
        validate_account_currency(s, paying_account_id, currency)

    def work() -> RecurringExpense:
        rec = RecurringExpense(
            name=name.strip(),
            category=category.strip(),
            supplier=(supplier or "").strip() or None,
            amount=amount,
            currency=currency,
            frequency=frequency,
            next_due_date=to_business_naive(next_due_date),
            paying_account_id=paying_account_id,
            is_active=True,
            notes=notes,
            created_by=created_by,
        )
        s.add(rec)
        s.flush()
        record_event(
            s,
            actor=created_by,
            action="recurring_expense.create",
            entity_type="recurring_expense",
            entity_id=rec.id,
            details={"name": rec.name, "amount": amount, "currency": currency, "frequency": frequency},
        )
        return rec

    return run_atomic(s, work)


def update_recurring_expense(s: Session, recurring_id: int, changes: dict, actor: str) -> RecurringExpense:
    """Apply a partial update. Currency is fixed at creation."""
    rec = get_recurring_expense(s, recurring_id)
    if changes.get("frequency") is not None:
        _validate_frequency(changes["frequency"])
    if changes.get("amount") is not None:
        validate_positive_amount(changes["amount"])
    account_id = changes.get("paying_account_id")
    if account_id and account_id != rec.paying_account_id:
        validate_account_currency(s, account_id, rec.currency)

    def work() -> RecurringExpense:
        for field, value in changes.items():
            if field in ("name", "category", "amount", "frequency", "is_active") and value is None:
                continue
            if field == "next_due_date":
                if value is None:
                    continue
                value = to_business_naive(value)
            setattr(rec, field, value)
        s.add(rec)
        record_event(
            s,
            actor=actor,
            action="recurring_expense.update",
            entity_type="recurring_expense",
            entity_id=rec.id,
            details={k: (v.isoformat() if isinstance(v, datetime) else v) for k, v in changes.items()},
        )
        return rec

    return run_atomic(s, work)


def delete_recurring_expense(s: Session, recurring_id: int, actor: str) -> None:
    # Expenses already booked from the template stay in the journal.
    rec = get_recurring_expense(s, recurring_id)

    def work() -> None:
        record_event(
            s,
            actor=actor,
            action="recurring_expense.delete",
            entity_type="recurring_expense",
            entity_id=rec.id,
            details={"name": rec.name, "category": rec.category, "amount": rec.amount},
        )
        s.delete(rec)

    run_atomic(s, work)


def list_recurring_expenses(
    s: Session,
    category: str | None = None,
    is_active: bool | None = None,
    today=None,
) -> dict:
    q = select(RecurringExpense)
    if category:
        q = q.where(RecurringExpense.category == category)
    if is_active is not None:
        q = q.where(RecurringExpense.is_active.is_(is_active))
    rows = s.execute(q.order_by(RecurringExpense.next_due_date.asc(), RecurringExpense.id.asc())).scalars().all()

    today = today or today_business()
    monthly: dict[str, Decimal] = {}
    due_total: dict[str, int] = {}
    due_count = 0
    for rec in rows:
        if not rec.is_active:
            continue
        months = RECURRING_FREQUENCY_MONTHS.get(rec.frequency, 1)
        monthly[rec.currency] = monthly.get(rec.currency, Decimal(0)) + Decimal(rec.amount) / months
        due = rec.next_due_date.date()
        if (due.year, due.month) == (today.year, today.month):
            due_count += 1
            due_total[rec.currency] = due_total.get(rec.currency, 0) + rec.amount

    return {
        "recurring_expenses": rows,
        "summary": {
            "total_count": len(rows),
            "active_count": sum(1 for r in rows if r.is_active),
            "monthly_totals_by_currency": {
                c: int(v.quantize(Decimal("1"), rounding=ROUND_HALF_UP)) for c, v in monthly.items()
            },
            "due_this_month": due_count,
            "due_this_month_total": due_total,
        },
    }


def pay_recurring_expense(
    s: Session,
    recurring_id: int,
    created_by: str,
    payment_date: datetime | None = None,
    paying_account_id: int | None = None,
    notes: str | None = None,
) -> tuple[Expense, Transaction, RecurringExpense]:
    """Book one period of a recurring expense and advance its due date.

    The expense, its journal entry and the template's new due date are
    committed together.
    """
    rec = get_recurring_expense(s, recurring_id)
    if not rec.is_active:
        raise LedgerValidationError(f'Recurring expense "{rec.name}" is inactive', code="recurring_expense_inactive")

    account_id = paying_account_id or rec.paying_account_id
    if not account_id:
        raise LedgerValidationError("A paying account is required", code="missing_paying_account")
    validate_account_currency(s, account_id, rec.currency)

    when = to_business_naive(payment_date) or naive_now()
    due = rec.next_due_date
    next_due = advance_due_date(due, rec.frequency)

    def work() -> tuple[Expense, Transaction, RecurringExpense]:
        # Only one payment may advance a given due date.
        claimed = s.execute(
            update(RecurringExpense)
            .where(
                RecurringExpense.id == rec.id,
                RecurringExpense.is_active.is_(True),
                RecurringExpense.next_due_date == due,
            )
            .values(next_due_date=next_due, last_paid_date=when)
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed != 1:
            raise LedgerValidationError(
                f'Recurring expense "{rec.name}" was paid or changed concurrently',
                code="recurring_expense_changed",
            )

        e = Expense(
            category=rec.category,
            description=f"Recurring expense: {rec.name}",
            supplier=rec.supplier,
            paying_account_id=account_id,
            amount=rec.amount,
            currency=rec.currency,
            expense_date=when,
            is_recurring=True,
            notes=notes or rec.notes,
        )
        s.add(e)
        s.flush()
        t = create_transaction(s, expense_entry(e, created_by))

        rec.next_due_date = next_due
        rec.last_paid_date = when
        s.add(rec)
        record_event(
            s,
            actor=created_by,
            action="recurring_expense.pay",
            entity_type="recurring_expense",
            entity_id=rec.id,
            reference=t.transaction_number,
            details={
                "expense_id": e.id,
                "amount": rec.amount,
                "currency": rec.currency,
                "next_due_date": next_due.isoformat(),
            },
        )
        s.flush()
        return e, t, rec

    e, t, rec = run_atomic(s, work)
    logger.info("recurring expense %s paid by %s, next due %s", rec.id, t.transaction_number, rec.next_due_date)
    return e, t, rec
