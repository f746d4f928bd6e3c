from datetime import datetime

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coachbooks.core.errors import LedgerValidationError, ReferenceNumberConflict
from coachbooks.db.metadata import Base, ReferenceCounter, Transaction
from coachbooks.db.unit_of_work import run_atomic
from coachbooks.services.numbering import (
    QUOTE,
    TXN,
    format_reference,
    generate_quote_number,
    generate_transaction_number,
    last_issued_sequence,
)


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine):
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    s = Session()
    try:
        yield s
    finally:
        s.close()


def _legacy_tx(session, number: str):
    t = Transaction(
        transaction_number=number,
        date=datetime(2025, 1, 5),
        type="EXPENSE",
        amount=1000,
        currency="EUR",
        created_by="legacy",
    )
    session.add(t)
    session.commit()
    return t


def test_transaction_numbers_increment_within_year(session):
    assert generate_transaction_number(session, year=2025) == "TXN-2025-00001"
    assert generate_transaction_number(session, year=2025) == "TXN-2025-00002"
    assert generate_transaction_number(session, year=2025) == "TXN-2025-00003"


def test_sequence_resets_on_new_year(session):
    generate_transaction_number(session, year=2025)
    generate_transaction_number(session, year=2025)
    assert generate_transaction_number(session, year=2026) == "TXN-2026-00001"


def test_quote_numbers_use_their_own_sequence(session):
    generate_transaction_number(session, year=2025)
    assert generate_quote_number(session, year=2025) == "QUOTE-2025-001"
    assert generate_quote_number(session, year=2025) == "QUOTE-2025-002"


def test_counter_realigns_after_legacy_numbers(session):
    _legacy_tx(session, "TXN-2025-00041")
    assert last_issued_sequence(session, TXN, 2025) == 41

    assert generate_transaction_number(session, year=2025) == "TXN-2025-00042"
    assert generate_transaction_number(session, year=2025) == "TXN-2025-00043"

    counter = session.execute(
        select(ReferenceCounter).where(ReferenceCounter.kind == TXN, ReferenceCounter.year == 2025)
    ).scalar_one()
    assert counter.last_value == 43


def test_other_year_numbers_do_not_leak(session):
    _legacy_tx(session, "TXN-2024-00999")
    assert generate_transaction_number(session, year=2025) == "TXN-2025-00001"


def test_format_reference_widths():
    assert format_reference(TXN, 2025, 7) == "TXN-2025-00007"
    assert format_reference(QUOTE, 2025, 7) == "QUOTE-2025-007"


def _collision():
    return IntegrityError(
        "INSERT INTO transactions", {}, Exception("UNIQUE constraint failed: transactions.transaction_number")
    )


def test_run_atomic_retries_reference_collisions(session):
    calls = []

    def work():
        calls.append(1)
        if len(calls) < 3:
            raise _collision()
        return "ok"

    assert run_atomic(session, work, retries=5) == "ok"
    assert len(calls) == 3


def test_run_atomic_gives_up_with_conflict(session):
    def work():
        raise _collision()

    with pytest.raises(ReferenceNumberConflict) as ei:
        run_atomic(session, work, retries=2)
    assert ei.value.status_code == 409


def test_run_atomic_does_not_retry_other_errors(session):
    calls = []

    def work():
        calls.append(1)
        raise IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: payments.amount"))

    with pytest.raises(IntegrityError):
        run_atomic(session, work, retries=5)
    assert len(calls) == 1

    def invalid():
        calls.append(1)
        raise LedgerValidationError("nope")

    with pytest.raises(LedgerValidationError):
        run_atomic(session, invalid, retries=5)
    assert len(calls) == 2
