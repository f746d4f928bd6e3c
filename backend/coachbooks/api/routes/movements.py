from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachbooks.api.deps import db, acting_user
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.distribution import Distribution
from coachbooks.schemas.alert import TransferAlertInput
from coachbooks.schemas.distribution import DistributionCreate
from coachbooks.schemas.movement import FxExchangeBody, TransferBody
from coachbooks.schemas.operation import FxOperationOut, OperationOut
from coachbooks.schemas.transaction import FxExchangeCreate, TransactionOut, TransferCreate
from coachbooks.services.audit import record_event
from coachbooks.services.journal import (
    create_fx_transactions,
    create_transaction,
    create_transfer_transaction,
    distribution_entry,
)
from coachbooks.services.validation import (
    generate_alerts,
    validate_account_currency,
    validate_currency,
    validate_positive_amount,
)
from coachbooks.utils.timezone import naive_now, to_business_naive

router = APIRouter(tags=["movements"])


@router.post("/transfers", response_model=OperationOut)
def transfer(body: TransferBody, s: Session = Depends(db), user: str = Depends(acting_user)):
    alerts = generate_alerts(s, TransferAlertInput(amount=body.amount, currency=body.currency))
    t = create_transfer_transaction(
        s,
        TransferCreate(**{**body.model_dump(), "date": to_business_naive(body.date)}, created_by=user),
    )
    return {"transaction": TransactionOut.model_validate(t), "alerts": alerts}


@router.post("/fx-exchange", response_model=FxOperationOut)
def fx_exchange(body: FxExchangeBody, s: Session = Depends(db), user: str = Depends(acting_user)):
    leg1, leg2 = create_fx_transactions(
        s,
        FxExchangeCreate(**{**body.model_dump(), "date": to_business_naive(body.date)}, created_by=user),
    )
    return {
        "from_transaction": TransactionOut.model_validate(leg1),
        "to_transaction": TransactionOut.model_validate(leg2),
        "alerts": [],
    }


@router.post("/distributions", response_model=OperationOut)
def distribute(body: DistributionCreate, s: Session = Depends(db), user: str = Depends(acting_user)):
    validate_currency(body.currency)
    validate_positive_amount(body.amount)
    validate_account_currency(s, body.source_account_id, body.currency)

    when = to_business_naive(body.distribution_date) or naive_now()

    def work():
        d = Distribution(
            beneficiary=body.beneficiary.strip(),
            amount=body.amount,
            currency=body.currency,
            distribution_date=when,
            notes=body.notes,
        )
        s.add(d)
        s.flush()
        record_event(s, actor=user, action="distribution.create", entity_type="distribution", entity_id=d.id)
        return create_transaction(
            s, distribution_entry(d.id, body.source_account_id, body.amount, body.currency, user, date=when)
        )

    t = run_atomic(s, work)
    return {"transaction": TransactionOut.model_validate(t), "alerts": []}
