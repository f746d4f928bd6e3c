from pydantic import BaseModel
from datetime import datetime

from coachbooks.schemas.common import Currency

class DistributionCreate(BaseModel):
    beneficiary: str
    source_account_id: int
    amount: int
    currency: Currency
    distribution_date: datetime | None = None
    notes: str | None = None
