from pydantic import BaseModel, model_validator
from datetime import datetime

from coachbooks.schemas.common import Currency

class PaymentCreate(BaseModel):
    student_id: int | None = None
    mentor_id: int | None = None
    professor_id: int | None = None
    bank_account_id: int
    amount: int
    currency: Currency
    payment_date: datetime | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def one_party(self):
        if not (self.student_id or self.mentor_id or self.professor_id):
            raise ValueError("a student, mentor or professor is required")
        return self

class PaymentOut(BaseModel):
    id: int
    student_id: int | None
    mentor_id: int | None
    professor_id: int | None
    bank_account_id: int | None
    amount: int
    currency: str
    payment_date: datetime
    payment_method: str | None
    reference_number: str | None
    notes: str | None

    class Config:
        from_attributes = True

class AllocationItem(BaseModel):
    schedule_id: int
    amount: int

class AllocateBody(BaseModel):
    allocations: list[AllocationItem]

class AllocationOut(BaseModel):
    id: int
    payment_id: int
    schedule_id: int
    amount: int
    currency: str

    class Config:
        from_attributes = True

class ScheduleOut(BaseModel):
    id: int
    due_date: datetime
    amount: int
    currency: str
    paid_amount: int
    status: str
    paid_date: datetime | None = None

    class Config:
        from_attributes = True

class AllocateResult(BaseModel):
    allocations: list[AllocationOut]
    updated_schedules: list[ScheduleOut]

class AllocationSuggestionOut(BaseModel):
    schedule_id: int
    schedule_due_date: datetime
    schedule_amount: int
    schedule_paid_amount: int
    schedule_remaining_amount: int
    suggested_allocation: int
    priority: int
    schedule_status: str

    class Config:
        from_attributes = True

class AllocationStatsOut(BaseModel):
    total_allocated: int
    remaining_amount: int
    schedules_fully_paid: int
    schedules_partially_paid: int
