from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachbooks.api.deps import db, acting_user
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.models.expense import Expense
from coachbooks.schemas.alert import ExpenseAlertInput
from coachbooks.schemas.expense import ExpenseCreate
from coachbooks.schemas.operation import OperationOut
from coachbooks.schemas.transaction import TransactionOut
from coachbooks.services.audit import record_event
from coachbooks.services.journal import create_transaction, expense_entry
from coachbooks.services.validation import (
    generate_alerts,
    validate_account_currency,
    validate_currency,
    validate_positive_amount,
)
from coachbooks.utils.timezone import naive_now, to_business_naive

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("", response_model=OperationOut)
def record_expense(body: ExpenseCreate, s: Session = Depends(db), user: str = Depends(acting_user)):
    validate_currency(body.currency)
    validate_positive_amount(body.amount)
    validate_account_currency(s, body.paying_account_id, body.currency)

    alerts = generate_alerts(s, ExpenseAlertInput(amount=body.amount, currency=body.currency, supplier=body.supplier))

    def work():
        e = Expense(
            category=body.category.strip(),
            description=body.description,
            supplier=(body.supplier or "").strip() or None,
            paying_account_id=body.paying_account_id,
            student_id=body.student_id,
            amount=body.amount,
            currency=body.currency,
            expense_date=to_business_naive(body.expense_date) or naive_now(),
            notes=body.notes,
        )
        s.add(e)
        s.flush()
        record_event(s, actor=user, action="expense.create", entity_type="expense", entity_id=e.id)
        return create_transaction(s, expense_entry(e, user))

    t = run_atomic(s, work)
    return {"transaction": TransactionOut.model_validate(t), "alerts": alerts}
