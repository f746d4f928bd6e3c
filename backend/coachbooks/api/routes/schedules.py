from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachbooks.api.deps import db
from coachbooks.schemas.payment import ScheduleOut
from coachbooks.services.allocation import get_remaining_amount, update_schedule_status

router = APIRouter(prefix="/payment-schedules", tags=["payment-schedules"])


@router.get("/{schedule_id}/remaining")
def remaining(schedule_id: int, s: Session = Depends(db)):
    return {"schedule_id": schedule_id, "remaining_amount": get_remaining_amount(s, schedule_id)}


@router.post("/{schedule_id}/refresh-status", response_model=ScheduleOut)
def refresh_status(schedule_id: int, s: Session = Depends(db)):
    return update_schedule_status(s, schedule_id)
