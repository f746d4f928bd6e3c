from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select

from coachbooks.api.deps import db, acting_user
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.mission import Mission
from coachbooks.schemas.alert import MissionAlertInput
from coachbooks.schemas.mission import MissionOut, MissionPay
from coachbooks.schemas.operation import OperationOut
from coachbooks.schemas.transaction import TransactionOut
from coachbooks.services.audit import record_event
from coachbooks.services.journal import create_mission_payment_transaction
from coachbooks.services.validation import generate_alerts, validate_account_currency, validate_mission_payment
from coachbooks.utils.timezone import naive_now

router = APIRouter(prefix="/missions", tags=["missions"])


def _get_mission(s: Session, mission_id: int) -> Mission:
    m = s.execute(select(Mission).where(Mission.id == mission_id)).scalar_one_or_none()
    if m is None:
        raise HTTPException(status_code=404, detail="mission_not_found")
    return m


@router.get("/{mission_id}", response_model=MissionOut)
def get_mission(mission_id: int, s: Session = Depends(db)):
    return _get_mission(s, mission_id)


@router.post("/{mission_id}/validate", response_model=MissionOut)
def validate_mission(mission_id: int, s: Session = Depends(db), user: str = Depends(acting_user)):
    m = _get_mission(s, mission_id)
    if m.status not in ("DRAFT", "PENDING"):
        raise HTTPException(status_code=400, detail="mission_not_pending")

    def work():
        m.status = "VALIDATED"
        m.validated_at = naive_now()
        s.add(m)
        record_event(s, actor=user, action="mission.validate", entity_type="mission", entity_id=m.id)
        return m

    return run_atomic(s, work)


@router.post("/{mission_id}/pay", response_model=OperationOut)
def pay_mission(mission_id: int, body: MissionPay, s: Session = Depends(db), user: str = Depends(acting_user)):
    m = _get_mission(s, mission_id)
    validate_mission_payment(m)
    validate_account_currency(s, body.payment_account_id, m.currency)

    alerts = generate_alerts(
        s, MissionAlertInput(amount=m.amount, currency=m.currency, hours_worked=m.hours_worked)
    )
    t = create_mission_payment_transaction(s, m, body.payment_account_id, created_by=user)
    return {"transaction": TransactionOut.model_validate(t), "alerts": alerts}
