"""Business validation for ledger operations.

Hard validations raise a ``LedgerError`` subclass and block persistence.
Alerts are advisory: they are returned to the caller and never block.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from coachbooks.core.constants import CURRENCIES
from coachbooks.core.errors import LedgerNotFoundError, LedgerValidationError
from coachbooks.models.bank_account import BankAccount
from coachbooks.models.payment import Payment
from coachbooks.schemas.alert import (
    Alert,
    ExpenseAlertInput,
    MissionAlertInput,
    PaymentAlertInput,
    TransferAlertInput,
)
from coachbooks.utils.money import format_accounting_amount, from_cents

logger = logging.getLogger(__name__)

LARGE_PAYMENT_THRESHOLD = 1_000_000
LARGE_EXPENSE_THRESHOLD = 500_000
LARGE_MISSION_THRESHOLD = 200_000
LARGE_TRANSFER_THRESHOLD = 1_000_000

DUPLICATE_AMOUNT_TOLERANCE_PERCENT = 5
DUPLICATE_WINDOW = timedelta(hours=24)


def _get_account(s: Session, account_id: int) -> BankAccount | None:
    return s.execute(select(BankAccount).where(BankAccount.id == account_id)).scalar_one_or_none()


def validate_account_exists(s: Session, account_id: int) -> BankAccount:
    account = _get_account(s, account_id)
    if account is None:
        raise LedgerNotFoundError(f"Account {account_id} not found", code="account_not_found")
    if not account.is_active:
        raise LedgerValidationError(f'Account "{account.account_name}" is inactive', code="account_inactive")
    return account


def validate_account_currency(s: Session, account_id: int, expected_currency: str) -> BankAccount:
    account = validate_account_exists(s, account_id)
    if account.currency != expected_currency:
        raise LedgerValidationError(
            f'Account "{account.account_name}" currency ({account.currency}) '
            f"does not match expected currency ({expected_currency})",
            code="currency_mismatch",
        )
    return account


def validate_payment_account(payment) -> None:
    if not getattr(payment, "bank_account_id", None):
        raise LedgerValidationError(
            "Payment must have a receiving bank account (bank_account_id is required)",
            code="missing_receiving_account",
        )


def validate_allocation_amount(payment_amount: int, allocations: Iterable) -> None:
    total = sum(_allocation_amount(a) for a in allocations)
    if total > payment_amount:
        raise LedgerValidationError(
            f"Total allocations ({from_cents(total)}) exceed payment amount ({from_cents(payment_amount)})",
            code="allocation_exceeds_payment",
        )


def _allocation_amount(a) -> int:
    if isinstance(a, dict):
        return int(a["amount"])
    return int(a.amount)


def validate_mission_payment(mission) -> None:
    if mission.status != "VALIDATED":
        raise LedgerValidationError(
            f'Cannot pay mission "{mission.title}" - status must be VALIDATED (current: {mission.status})',
            code="mission_not_validated",
        )
    if mission.paid_at is not None:
        raise LedgerValidationError(
            f'Mission "{mission.title}" has already been paid on {mission.paid_at.isoformat()}',
            code="mission_already_paid",
        )


def validate_positive_amount(amount: int, field_name: str = "amount") -> None:
    if amount is None or amount <= 0:
        raise LedgerValidationError(f"{field_name} must be positive (got: {amount})", code="amount_not_positive")


def validate_currency(currency: str) -> None:
    if currency not in CURRENCIES:
        raise LedgerValidationError(
            f'Currency "{currency}" is not supported. Supported currencies: {", ".join(CURRENCIES)}',
            code="currency_unsupported",
        )


def detect_duplicate_payment(
    s: Session,
    student_id: int | None,
    mentor_id: int | None,
    professor_id: int | None,
    amount: int,
    date: datetime,
    exclude_payment_id: int | None = None,
) -> Payment | None:
    """Most recent payment for the same party within ±5% of ``amount`` and ±24h of ``date``.

    Heuristic only; false positives and negatives are expected.
    """
    tol = DUPLICATE_AMOUNT_TOLERANCE_PERCENT
    amount_min = (amount * (100 - tol)) // 100
    amount_max = -((-amount * (100 + tol)) // 100)

    q = select(Payment).where(
        Payment.amount >= amount_min,
        Payment.amount <= amount_max,
        Payment.payment_date >= date - DUPLICATE_WINDOW,
        Payment.payment_date <= date + DUPLICATE_WINDOW,
    )
    if student_id:
        q = q.where(Payment.student_id == student_id)
    if mentor_id:
        q = q.where(Payment.mentor_id == mentor_id)
    if professor_id:
        q = q.where(Payment.professor_id == professor_id)
    if exclude_payment_id is not None:
        q = q.where(Payment.id != exclude_payment_id)

    q = q.order_by(Payment.created_at.desc(), Payment.id.desc()).limit(1)
    return s.execute(q).scalars().first()


def _payment_alerts(s: Session, data: PaymentAlertInput) -> list[Alert]:
    alerts: list[Alert] = []
    if data.amount and data.amount > LARGE_PAYMENT_THRESHOLD:
        alerts.append(
            Alert(
                level="WARNING",
                type="LARGE_AMOUNT",
                message=f"Large payment amount: {format_accounting_amount(data.amount, data.currency or '')}".rstrip(),
                data={"amount": data.amount, "currency": data.currency},
            )
        )

    if data.amount and data.payment_date:
        dup = detect_duplicate_payment(
            s,
            data.student_id,
            data.mentor_id,
            data.professor_id,
            data.amount,
            data.payment_date,
            exclude_payment_id=data.exclude_payment_id,
        )
        if dup is not None:
            alerts.append(
                Alert(
                    level="WARNING",
                    type="POTENTIAL_DUPLICATE",
                    message="Potential duplicate payment detected (similar amount and date within 24h)",
                    data={
                        "duplicate_id": dup.id,
                        "duplicate_amount": dup.amount,
                        "duplicate_date": dup.payment_date.isoformat(),
                    },
                )
            )
    return alerts


def _expense_alerts(data: ExpenseAlertInput) -> list[Alert]:
    alerts: list[Alert] = []
    if data.amount and data.amount > LARGE_EXPENSE_THRESHOLD:
        alerts.append(
            Alert(
                level="WARNING",
                type="LARGE_EXPENSE",
                message=f"Large expense amount: {format_accounting_amount(data.amount, data.currency or '')}".rstrip(),
                data={"amount": data.amount, "currency": data.currency},
            )
        )
    if not (data.supplier or "").strip():
        alerts.append(Alert(level="INFO", type="NO_SUPPLIER", message="Expense has no supplier specified"))
    return alerts


def _mission_alerts(data: MissionAlertInput) -> list[Alert]:
    alerts: list[Alert] = []
    if data.amount and data.amount > LARGE_MISSION_THRESHOLD:
        alerts.append(
            Alert(
                level="INFO",
                type="LARGE_MISSION",
                message=f"Large mission amount: {format_accounting_amount(data.amount, data.currency or '')}".rstrip(),
                data={"amount": data.amount, "currency": data.currency},
            )
        )
    if not data.hours_worked:
        alerts.append(Alert(level="INFO", type="NO_HOURS", message="Mission has no hours worked specified"))
    return alerts


def _transfer_alerts(data: TransferAlertInput) -> list[Alert]:
    if data.amount and data.amount > LARGE_TRANSFER_THRESHOLD:
        return [
            Alert(
                level="WARNING",
                type="LARGE_TRANSFER",
                message=f"Large transfer amount: {format_accounting_amount(data.amount, data.currency or '')}".rstrip(),
                data={"amount": data.amount, "currency": data.currency},
            )
        ]
    return []


def generate_alerts(
    s: Session,
    data: PaymentAlertInput | ExpenseAlertInput | MissionAlertInput | TransferAlertInput,
) -> list[Alert]:
    if isinstance(data, PaymentAlertInput):
        alerts = _payment_alerts(s, data)
    elif isinstance(data, ExpenseAlertInput):
        alerts = _expense_alerts(data)
    elif isinstance(data, MissionAlertInput):
        alerts = _mission_alerts(data)
    elif isinstance(data, TransferAlertInput):
        alerts = _transfer_alerts(data)
    else:
        raise TypeError(f"unsupported alert input: {type(data).__name__}")

    for a in alerts:
        logger.log(logging.WARNING if a.level != "INFO" else logging.INFO, "%s alert %s: %s", data.operation, a.type, a.message)
    return alerts
