from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

AlertLevel = Literal["INFO", "WARNING", "ERROR"]


class Alert(BaseModel):
    level: AlertLevel
    type: str
    message: str
    data: dict[str, Any] | None = None


class PaymentAlertInput(BaseModel):
    operation: Literal["PAYMENT"] = "PAYMENT"
    amount: int | None = None
    currency: str | None = None
    payment_date: datetime | None = None
    student_id: int | None = None
    mentor_id: int | None = None
    professor_id: int | None = None
    exclude_payment_id: int | None = None


class ExpenseAlertInput(BaseModel):
    operation: Literal["EXPENSE"] = "EXPENSE"
    amount: int | None = None
    currency: str | None = None
    supplier: str | None = None


class MissionAlertInput(BaseModel):
    operation: Literal["MISSION"] = "MISSION"
    amount: int | None = None
    currency: str | None = None
    hours_worked: Decimal | None = None


class TransferAlertInput(BaseModel):
    operation: Literal["TRANSFER"] = "TRANSFER"
    amount: int | None = None
    currency: str | None = None


AlertInput = Annotated[
    Union[PaymentAlertInput, ExpenseAlertInput, MissionAlertInput, TransferAlertInput],
    Field(discriminator="operation"),
]
