from __future__ import annotations

from datetime import date, datetime

from coachbooks.core.constants import SCHEDULE_OVERDUE, SCHEDULE_PAID, SCHEDULE_PARTIAL, SCHEDULE_PENDING
from coachbooks.utils.timezone import naive_now, to_business_naive


def calculate_schedule_status(
    paid_amount: int,
    total_amount: int,
    due_date: date | datetime,
    now: datetime | None = None,
) -> str:
    # PAID and PARTIAL win over OVERDUE: a partially paid late schedule is PARTIAL.
    if paid_amount >= total_amount:
        return SCHEDULE_PAID
    if paid_amount > 0:
        return SCHEDULE_PARTIAL

    current = now if now is not None else naive_now()
    if isinstance(due_date, datetime):
        if (current.tzinfo is None) != (due_date.tzinfo is None):
            current = to_business_naive(current)
            due_date = to_business_naive(due_date)
        overdue = current > due_date
    else:
        overdue = current.date() > due_date

    if overdue:
        return SCHEDULE_OVERDUE
    return SCHEDULE_PENDING
