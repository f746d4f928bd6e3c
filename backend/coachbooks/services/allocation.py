from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from coachbooks.core.constants import OPEN_SCHEDULE_STATUSES, SCHEDULE_OVERDUE, SCHEDULE_PAID, SCHEDULE_PARTIAL
from coachbooks.core.errors import LedgerNotFoundError, LedgerValidationError
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.payment import Payment
from coachbooks.models.payment_allocation import PaymentAllocation
from coachbooks.models.payment_schedule import PaymentSchedule
from coachbooks.services.validation import validate_allocation_amount, validate_positive_amount
from coachbooks.utils.schedule_status import calculate_schedule_status
from coachbooks.utils.timezone import naive_now

logger = logging.getLogger(__name__)

_PRIORITY = {SCHEDULE_OVERDUE: 1, SCHEDULE_PARTIAL: 2}


@dataclass
class AllocationSuggestion:
    schedule_id: int
    schedule_due_date: datetime
    schedule_amount: int
    schedule_paid_amount: int
    schedule_remaining_amount: int
    suggested_allocation: int
    priority: int  # 1 overdue, 2 partial, 3 pending
    schedule_status: str


def _get_payment(s: Session, payment_id: int) -> Payment:
    p = s.execute(select(Payment).where(Payment.id == payment_id)).scalar_one_or_none()
    if p is None:
        raise LedgerNotFoundError(f"Payment {payment_id} not found", code="payment_not_found")
    return p


def _get_schedule(s: Session, schedule_id: int) -> PaymentSchedule:
    sc = s.execute(select(PaymentSchedule).where(PaymentSchedule.id == schedule_id)).scalar_one_or_none()
    if sc is None:
        raise LedgerNotFoundError(f"Schedule {schedule_id} not found", code="schedule_not_found")
    return sc


def _allocated_to_payment(s: Session, payment_id: int) -> int:
    return int(
        s.execute(
            select(func.coalesce(func.sum(PaymentAllocation.amount), 0)).where(PaymentAllocation.payment_id == payment_id)
        ).scalar_one()
    )


def _allocated_to_schedule(s: Session, schedule_id: int) -> int:
    return int(
        s.execute(
            select(func.coalesce(func.sum(PaymentAllocation.amount), 0)).where(PaymentAllocation.schedule_id == schedule_id)
        ).scalar_one()
    )


def suggest_allocation(
    s: Session,
    payment_id: int,
    student_id: int | None = None,
    mentor_id: int | None = None,
    professor_id: int | None = None,
    currency: str | None = None,
) -> list[AllocationSuggestion]:
    """Spread the unallocated part of a payment over open schedules.

    Schedules are filled oldest due date first; the result is then ordered by
    priority (overdue, partial, pending) for display.
    """
    payment = _get_payment(s, payment_id)
    remaining = payment.amount - _allocated_to_payment(s, payment_id)
    if remaining <= 0:
        return []

    q = select(PaymentSchedule).where(
        PaymentSchedule.status.in_(OPEN_SCHEDULE_STATUSES),
        PaymentSchedule.currency == (currency or payment.currency),
    )
    sid = student_id or payment.student_id
    mid = mentor_id or payment.mentor_id
    pid = professor_id or payment.professor_id
    if sid:
        q = q.where(PaymentSchedule.student_id == sid)
    if mid:
        q = q.where(PaymentSchedule.mentor_id == mid)
    if pid:
        q = q.where(PaymentSchedule.professor_id == pid)

    schedules = s.execute(q.order_by(PaymentSchedule.due_date.asc(), PaymentSchedule.id.asc())).scalars().all()

    out: list[AllocationSuggestion] = []
    for sc in schedules:
        if remaining <= 0:
            break
        paid = _allocated_to_schedule(s, sc.id)
        left = sc.amount - paid
        if left <= 0:
            continue
        amount = min(remaining, left)
        out.append(
            AllocationSuggestion(
                schedule_id=sc.id,
                schedule_due_date=sc.due_date,
                schedule_amount=sc.amount,
                schedule_paid_amount=paid,
                schedule_remaining_amount=left,
                suggested_allocation=amount,
                priority=_PRIORITY.get(sc.status, 3),
                schedule_status=sc.status,
            )
        )
        remaining -= amount

    out.sort(key=lambda x: x.priority)
    return out


def _refresh_schedule_status(s: Session, sc: PaymentSchedule, now: datetime | None = None) -> PaymentSchedule:
    paid = _allocated_to_schedule(s, sc.id)
    status = calculate_schedule_status(paid, sc.amount, sc.due_date, now=now)
    if status != SCHEDULE_PAID:
        sc.paid_date = None
    elif sc.status != SCHEDULE_PAID or sc.paid_date is None:
        sc.paid_date = naive_now()
    sc.paid_amount = paid
    sc.status = status
    s.add(sc)
    s.flush()
    return sc


def update_schedule_status(s: Session, schedule_id: int) -> PaymentSchedule:
    sc = _get_schedule(s, schedule_id)
    return run_atomic(s, lambda: _refresh_schedule_status(s, sc))


def allocate_payment(s: Session, payment_id: int, allocations: list[dict]) -> dict:
    """Allocate a payment to schedules; all allocations land together or not at all."""
    payment = _get_payment(s, payment_id)
    for a in allocations:
        validate_positive_amount(int(a["amount"]), "allocation amount")

    already = _allocated_to_payment(s, payment_id)
    validate_allocation_amount(payment.amount, [{"amount": already}, *allocations])

    def work() -> dict:
        created: list[PaymentAllocation] = []
        updated: list[PaymentSchedule] = []
        for a in allocations:
            sc = _get_schedule(s, int(a["schedule_id"]))
            if sc.currency != payment.currency:
                raise LedgerValidationError(
                    f"Schedule currency ({sc.currency}) does not match payment currency ({payment.currency})",
                    code="currency_mismatch",
                )
            paid = _allocated_to_schedule(s, sc.id)
            amount = int(a["amount"])
            if paid + amount > sc.amount:
                raise LedgerValidationError(
                    f"Allocation amount ({amount}) exceeds schedule remaining amount ({sc.amount - paid})",
                    code="allocation_exceeds_schedule",
                )
            row = PaymentAllocation(payment_id=payment.id, schedule_id=sc.id, amount=amount, currency=payment.currency)
            s.add(row)
            s.flush()
            created.append(row)
            updated.append(_refresh_schedule_status(s, sc))
        return {"allocations": created, "updated_schedules": updated}

    result = run_atomic(s, work)
    logger.info("payment %s allocated to %d schedule(s)", payment_id, len(result["allocations"]))
    return result


def get_remaining_amount(s: Session, schedule_id: int) -> int:
    sc = _get_schedule(s, schedule_id)
    return sc.amount - _allocated_to_schedule(s, schedule_id)


def get_allocation_stats(s: Session, payment_id: int) -> dict:
    payment = _get_payment(s, payment_id)
    total = _allocated_to_payment(s, payment_id)

    statuses = (
        s.execute(
            select(PaymentSchedule.id, PaymentSchedule.status)
            .join(PaymentAllocation, PaymentAllocation.schedule_id == PaymentSchedule.id)
            .where(PaymentAllocation.payment_id == payment_id)
            .distinct()
        )
        .all()
    )
    return {
        "total_allocated": total,
        "remaining_amount": payment.amount - total,
        "schedules_fully_paid": sum(1 for _, st in statuses if st == SCHEDULE_PAID),
        "schedules_partially_paid": sum(1 for _, st in statuses if st == SCHEDULE_PARTIAL),
    }
