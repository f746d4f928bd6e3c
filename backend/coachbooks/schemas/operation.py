from pydantic import BaseModel

from coachbooks.schemas.alert import Alert
from coachbooks.schemas.transaction import TransactionOut


class OperationOut(BaseModel):
    """A journal write plus the advisory alerts raised while validating it."""

    transaction: TransactionOut
    alerts: list[Alert] = []


class FxOperationOut(BaseModel):
    from_transaction: TransactionOut
    to_transaction: TransactionOut
    alerts: list[Alert] = []
