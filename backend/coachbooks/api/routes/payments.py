from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select

from coachbooks.api.deps import db, acting_user
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.payment import Payment
from coachbooks.schemas.alert import PaymentAlertInput
from coachbooks.schemas.operation import OperationOut
from coachbooks.schemas.payment import (
    AllocateBody,
    AllocateResult,
    AllocationStatsOut,
    AllocationSuggestionOut,
    PaymentCreate,
    PaymentOut,
)
from coachbooks.schemas.transaction import TransactionOut
from coachbooks.services.allocation import allocate_payment, get_allocation_stats, suggest_allocation
from coachbooks.services.audit import record_event
from coachbooks.services.journal import create_transaction, payment_entry
from coachbooks.services.validation import (
    generate_alerts,
    validate_account_currency,
    validate_currency,
    validate_positive_amount,
)
from coachbooks.utils.timezone import naive_now, to_business_naive

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=OperationOut)
def record_payment(body: PaymentCreate, s: Session = Depends(db), user: str = Depends(acting_user)):
    validate_currency(body.currency)
    validate_positive_amount(body.amount)
    validate_account_currency(s, body.bank_account_id, body.currency)

    when = to_business_naive(body.payment_date) or naive_now()

    # Checked before the payment row exists so it cannot match itself.
    alerts = generate_alerts(
        s,
        PaymentAlertInput(
            amount=body.amount,
            currency=body.currency,
            payment_date=when,
            student_id=body.student_id,
            mentor_id=body.mentor_id,
            professor_id=body.professor_id,
        ),
    )

    def work():
        p = Payment(
            student_id=body.student_id,
            mentor_id=body.mentor_id,
            professor_id=body.professor_id,
            bank_account_id=body.bank_account_id,
            amount=body.amount,
            currency=body.currency,
            payment_date=when,
            payment_method=body.payment_method,
            reference_number=body.reference_number,
            notes=body.notes,
        )
        s.add(p)
        s.flush()
        record_event(s, actor=user, action="payment.create", entity_type="payment", entity_id=p.id)
        return create_transaction(s, payment_entry(p, user))

    t = run_atomic(s, work)
    return {"transaction": TransactionOut.model_validate(t), "alerts": alerts}


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int, s: Session = Depends(db)):
    p = s.execute(select(Payment).where(Payment.id == payment_id)).scalar_one_or_none()
    if p is None:
        raise HTTPException(status_code=404, detail="payment_not_found")
    return p


@router.get("/{payment_id}/allocation-suggestions", response_model=list[AllocationSuggestionOut])
def allocation_suggestions(payment_id: int, s: Session = Depends(db)):
    return suggest_allocation(s, payment_id)


@router.post("/{payment_id}/allocations", response_model=AllocateResult)
def allocate(payment_id: int, body: AllocateBody, s: Session = Depends(db)):
    return allocate_payment(s, payment_id, [a.model_dump() for a in body.allocations])


@router.get("/{payment_id}/allocation-stats", response_model=AllocationStatsOut)
def allocation_stats(payment_id: int, s: Session = Depends(db)):
    return get_allocation_stats(s, payment_id)
