from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.quote import Quote
from coachbooks.services.audit import record_event
from coachbooks.services.numbering import generate_quote_number
from coachbooks.services.validation import validate_currency, validate_positive_amount

logger = logging.getLogger(__name__)


def create_quote(
    s: Session,
    student_id: int,
    total_amount: int,
    currency: str,
    created_by: str,
    notes: str | None = None,
) -> Quote:
    validate_positive_amount(total_amount, "total_amount")
    validate_currency(currency)

    def work() -> Quote:
        q = Quote(
            quote_number=generate_quote_number(s),
            student_id=student_id,
            status="DRAFT",
            total_amount=total_amount,
            currency=currency,
            notes=notes,
            created_by=created_by,
        )
        s.add(q)
        s.flush()
        record_event(s, actor=created_by, action="quote.create", entity_type="quote", entity_id=q.id, reference=q.quote_number)
        return q

    q = run_atomic(s, work)
    logger.info("quote %s created for student %s", q.quote_number, student_id)
    return q
