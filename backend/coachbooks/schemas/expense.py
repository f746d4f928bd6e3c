from pydantic import BaseModel
from datetime import datetime

from coachbooks.schemas.common import Currency

class ExpenseCreate(BaseModel):
    category: str
    description: str | None = None
    supplier: str | None = None
    paying_account_id: int
    student_id: int | None = None
    amount: int
    currency: Currency
    expense_date: datetime | None = None
    notes: str | None = None
