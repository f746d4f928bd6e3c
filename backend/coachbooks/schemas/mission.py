from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal

class MissionPay(BaseModel):
    payment_account_id: int

class MissionOut(BaseModel):
    id: int
    title: str
    status: str
    mentor_id: int | None
    professor_id: int | None
    student_id: int | None
    hours_worked: Decimal | None
    amount: int
    currency: str
    validated_at: datetime | None
    paid_at: datetime | None

    class Config:
        from_attributes = True
