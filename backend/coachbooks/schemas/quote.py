from pydantic import BaseModel
from datetime import datetime

from coachbooks.schemas.common import Currency

class QuoteCreate(BaseModel):
    student_id: int
    total_amount: int
    currency: Currency
    notes: str | None = None

class QuoteOut(BaseModel):
    id: int
    quote_number: str
    student_id: int
    status: str
    total_amount: int
    currency: str
    notes: str | None
    created_by: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True
