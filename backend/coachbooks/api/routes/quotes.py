from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select

from coachbooks.api.deps import db, acting_user
from coachbooks.models.quote import Quote
from coachbooks.schemas.quote import QuoteCreate, QuoteOut
from coachbooks.services.quotes import create_quote

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("", response_model=QuoteOut)
def new_quote(body: QuoteCreate, s: Session = Depends(db), user: str = Depends(acting_user)):
    return create_quote(
        s,
        student_id=body.student_id,
        total_amount=body.total_amount,
        currency=body.currency,
        created_by=user,
        notes=body.notes,
    )


@router.get("/{quote_id}", response_model=QuoteOut)
def get_quote(quote_id: int, s: Session = Depends(db)):
    q = s.execute(select(Quote).where(Quote.id == quote_id)).scalar_one_or_none()
    if q is None:
        raise HTTPException(status_code=404, detail="quote_not_found")
    return q
