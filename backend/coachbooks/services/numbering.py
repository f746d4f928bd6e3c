from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from coachbooks.models.quote import Quote
from coachbooks.models.reference_counter import ReferenceCounter
from coachbooks.models.transaction import Transaction
from coachbooks.utils.timezone import today_business

logger = logging.getLogger(__name__)

TXN = "TXN"
QUOTE = "QUOTE"

_WIDTH = {TXN: 5, QUOTE: 3}


def _prefix(kind: str, year: int) -> str:
    return f"{kind}-{year}-"


def _issued_column(kind: str):
    return Transaction.transaction_number if kind == TXN else Quote.quote_number


def last_issued_sequence(s: Session, kind: str, year: int) -> int:
    """Greatest suffix already issued for ``kind`` in ``year`` (0 if none)."""
    col = _issued_column(kind)
    prefix = _prefix(kind, year)
    last = (
        s.execute(select(col).where(col.startswith(prefix, autoescape=True)).order_by(col.desc()).limit(1))
        .scalars()
        .first()
    )
    if last is None:
        return 0
    try:
        return int(last[len(prefix):])
    except ValueError:
        logger.warning("unparseable %s reference %r ignored", kind, last)
        return 0


def _ensure_counter(s: Session, kind: str, year: int) -> None:
    dialect = s.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        insert = pg_insert if dialect == "postgresql" else sqlite_insert
        stmt = (
            insert(ReferenceCounter)
            .values({"kind": kind, "year": year, "last_value": 0})
            .on_conflict_do_nothing(index_elements=["kind", "year"])
        )
        s.execute(stmt)
        return

    existing = s.execute(
        select(ReferenceCounter.id).where(ReferenceCounter.kind == kind, ReferenceCounter.year == year)
    ).scalar_one_or_none()
    if existing is None:
        s.add(ReferenceCounter(kind=kind, year=year, last_value=0))
        s.flush()


def next_sequence(s: Session, kind: str, year: int) -> int:
    _ensure_counter(s, kind, year)

    where = (ReferenceCounter.kind == kind, ReferenceCounter.year == year)
    # The increment row-locks the counter until the caller commits.
    s.execute(
        update(ReferenceCounter)
        .where(*where)
        .values(last_value=ReferenceCounter.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    value = s.execute(select(ReferenceCounter.last_value).where(*where)).scalar_one()

    # Numbers minted before the counter existed (or outside it) must never be reissued.
    issued = last_issued_sequence(s, kind, year)
    if issued >= value:
        logger.warning("%s counter for %d behind issued numbers (%d >= %d), realigning", kind, year, issued, value)
        value = issued + 1
        s.execute(
            update(ReferenceCounter)
            .where(*where)
            .values(last_value=value)
            .execution_options(synchronize_session=False)
        )
    return value


def format_reference(kind: str, year: int, seq: int) -> str:
    return f"{_prefix(kind, year)}{seq:0{_WIDTH[kind]}d}"


def generate_transaction_number(s: Session, year: int | None = None) -> str:
    yr = year if year is not None else today_business().year
    return format_reference(TXN, yr, next_sequence(s, TXN, yr))


def generate_quote_number(s: Session, year: int | None = None) -> str:
    yr = year if year is not None else today_business().year
    return format_reference(QUOTE, yr, next_sequence(s, QUOTE, yr))
