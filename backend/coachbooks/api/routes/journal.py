from datetime import datetime
from io import BytesIO

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from coachbooks.api.deps import db
from coachbooks.schemas.common import Currency, TxType
from coachbooks.schemas.transaction import TransactionFilters, TransactionOut, TransactionPage
from coachbooks.services.journal import get_transaction, get_transactions
from coachbooks.services.journal_export import build_journal_workbook

router = APIRouter(prefix="/journal", tags=["journal"])


def journal_filters(
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    currency: Currency | None = Query(default=None),
    type: TxType | None = Query(default=None),
    account_id: int | None = Query(default=None),
    student_id: int | None = Query(default=None),
    mentor_id: int | None = Query(default=None),
    professor_id: int | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
) -> TransactionFilters:
    return TransactionFilters(
        start_date=start_date,
        end_date=end_date,
        currency=currency,
        type=type,
        account_id=account_id,
        student_id=student_id,
        mentor_id=mentor_id,
        professor_id=professor_id,
        limit=limit,
        offset=offset,
    )


@router.get("", response_model=TransactionPage)
def list_journal(f: TransactionFilters = Depends(journal_filters), s: Session = Depends(db)):
    return get_transactions(s, f)


@router.get("/export")
def export_journal(f: TransactionFilters = Depends(journal_filters), s: Session = Depends(db)):
    buf = BytesIO()
    count = build_journal_workbook(s, f, buf)
    buf.seek(0)

    stamp = datetime.now().strftime("%Y%m%d_%H%M")
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": f'attachment; filename="journal_{stamp}.xlsx"',
            "X-Row-Count": str(count),
        },
    )


@router.get("/{transaction_id}", response_model=TransactionOut)
def get_entry(transaction_id: int, s: Session = Depends(db)):
    return get_transaction(s, transaction_id)
