from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from coachbooks.api.deps import db, acting_user
from coachbooks.schemas.alert import ExpenseAlertInput
from coachbooks.schemas.recurring_expense import (
    RecurringExpenseCreate,
    RecurringExpenseOut,
    RecurringExpensePaid,
    RecurringExpensePay,
    RecurringExpensesList,
    RecurringExpenseUpdate,
)
from coachbooks.schemas.transaction import TransactionOut
from coachbooks.services.recurring_expenses import (
    create_recurring_expense,
    delete_recurring_expense,
    get_recurring_expense,
    list_recurring_expenses,
    pay_recurring_expense,
    update_recurring_expense,
)
from coachbooks.services.validation import generate_alerts

router = APIRouter(prefix="/recurring-expenses", tags=["recurring-expenses"])


@router.get("", response_model=RecurringExpensesList)
def list_templates(
    category: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    s: Session = Depends(db),
):
    return list_recurring_expenses(s, category=category, is_active=is_active)


@router.post("", response_model=RecurringExpenseOut)
def create_template(body: RecurringExpenseCreate, s: Session = Depends(db), user: str = Depends(acting_user)):
    return create_recurring_expense(s, created_by=user, **body.model_dump())


@router.get("/{recurring_id}", response_model=RecurringExpenseOut)
def get_template(recurring_id: int, s: Session = Depends(db)):
    return get_recurring_expense(s, recurring_id)


@router.patch("/{recurring_id}", response_model=RecurringExpenseOut)
def update_template(
    recurring_id: int, body: RecurringExpenseUpdate, s: Session = Depends(db), user: str = Depends(acting_user)
):
    return update_recurring_expense(s, recurring_id, body.model_dump(exclude_unset=True), actor=user)


@router.delete("/{recurring_id}")
def delete_template(recurring_id: int, s: Session = Depends(db), user: str = Depends(acting_user)):
    delete_recurring_expense(s, recurring_id, actor=user)
    return {"ok": True}


@router.post("/{recurring_id}/pay", response_model=RecurringExpensePaid)
def pay_template(
    recurring_id: int, body: RecurringExpensePay, s: Session = Depends(db), user: str = Depends(acting_user)
):
    rec = get_recurring_expense(s, recurring_id)
    alerts = generate_alerts(s, ExpenseAlertInput(amount=rec.amount, currency=rec.currency, supplier=rec.supplier))

    e, t, rec = pay_recurring_expense(
        s,
        recurring_id,
        created_by=user,
        payment_date=body.payment_date,
        paying_account_id=body.paying_account_id,
        notes=body.notes,
    )
    return {
        "transaction": TransactionOut.model_validate(t),
        "alerts": alerts,
        "expense_id": e.id,
        "recurring_expense": RecurringExpenseOut.model_validate(rec),
    }
