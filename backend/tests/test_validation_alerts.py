from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import TypeAdapter
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coachbooks.core.errors import LedgerNotFoundError, LedgerValidationError
from coachbooks.db.metadata import BankAccount, Base, Mission, Payment, Student
from coachbooks.schemas.alert import (
    AlertInput,
    ExpenseAlertInput,
    MissionAlertInput,
    PaymentAlertInput,
    TransferAlertInput,
)
from coachbooks.services.validation import (
    detect_duplicate_payment,
    generate_alerts,
    validate_account_currency,
    validate_account_exists,
    validate_allocation_amount,
    validate_currency,
    validate_mission_payment,
    validate_payment_account,
    validate_positive_amount,
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


def _mk_account(session, currency="EUR", is_active=True):
    acc = BankAccount(account_name=f"Acc {currency}", currency=currency, is_active=is_active)
    session.add(acc)
    session.commit()
    return acc


def _mk_student(session, name="Ines"):
    st = Student(name=name)
    session.add(st)
    session.commit()
    return st


def _mk_payment(session, student_id, amount, when):
    p = Payment(student_id=student_id, amount=amount, currency="EUR", payment_date=when)
    session.add(p)
    session.commit()
    return p


def test_account_must_exist_and_be_active(session):
    with pytest.raises(LedgerNotFoundError) as ei:
        validate_account_exists(session, 999)
    assert ei.value.code == "account_not_found"

    inactive = _mk_account(session, is_active=False)
    with pytest.raises(LedgerValidationError) as ei:
        validate_account_exists(session, inactive.id)
    assert ei.value.code == "account_inactive"


def test_account_currency_must_match(session):
    acc = _mk_account(session, "MAD")
    assert validate_account_currency(session, acc.id, "MAD").id == acc.id
    with pytest.raises(LedgerValidationError) as ei:
        validate_account_currency(session, acc.id, "EUR")
    assert ei.value.code == "currency_mismatch"
    assert "MAD" in ei.value.message and "EUR" in ei.value.message


def test_payment_needs_receiving_account():
    with pytest.raises(LedgerValidationError) as ei:
        validate_payment_account(Payment(amount=1, currency="EUR"))
    assert ei.value.code == "missing_receiving_account"
    validate_payment_account(Payment(amount=1, currency="EUR", bank_account_id=3))


def test_allocations_cannot_exceed_payment():
    validate_allocation_amount(10000, [{"amount": 4000}, {"amount": 6000}])
    with pytest.raises(LedgerValidationError) as ei:
        validate_allocation_amount(10000, [{"amount": 4000}, {"amount": 6001}])
    assert ei.value.code == "allocation_exceeds_payment"


def test_mission_payment_preconditions():
    validate_mission_payment(Mission(title="Coaching", status="VALIDATED", amount=1, currency="EUR"))

    with pytest.raises(LedgerValidationError) as ei:
        validate_mission_payment(Mission(title="Coaching", status="PENDING", amount=1, currency="EUR"))
    assert ei.value.code == "mission_not_validated"

    paid = Mission(title="Coaching", status="VALIDATED", amount=1, currency="EUR", paid_at=datetime(2025, 1, 1))
    with pytest.raises(LedgerValidationError) as ei:
        validate_mission_payment(paid)
    assert ei.value.code == "mission_already_paid"


@pytest.mark.parametrize("amount", [0, -1, None])
def test_amount_must_be_positive(amount):
    with pytest.raises(LedgerValidationError) as ei:
        validate_positive_amount(amount)
    assert ei.value.code == "amount_not_positive"


def test_currency_must_be_supported():
    for c in ("EUR", "MAD", "USD"):
        validate_currency(c)
    with pytest.raises(LedgerValidationError) as ei:
        validate_currency("GBP")
    assert ei.value.code == "currency_unsupported"


def test_duplicate_payment_within_tolerance_and_window(session):
    st = _mk_student(session)
    first = _mk_payment(session, st.id, 100000, datetime(2025, 1, 10))

    dup = detect_duplicate_payment(session, st.id, None, None, 103000, datetime(2025, 1, 11))
    assert dup is not None and dup.id == first.id

    assert detect_duplicate_payment(session, st.id, None, None, 200000, datetime(2025, 1, 11)) is None
    assert detect_duplicate_payment(session, st.id, None, None, 100000, datetime(2025, 1, 11, 0, 1)) is None

    other = _mk_student(session, "Adam")
    assert detect_duplicate_payment(session, other.id, None, None, 100000, datetime(2025, 1, 10)) is None


def test_duplicate_detection_can_exclude_a_payment(session):
    st = _mk_student(session)
    p = _mk_payment(session, st.id, 50000, datetime(2025, 1, 10))
    assert detect_duplicate_payment(session, st.id, None, None, 50000, datetime(2025, 1, 10), exclude_payment_id=p.id) is None


def test_duplicate_detection_returns_most_recent(session):
    st = _mk_student(session)
    _mk_payment(session, st.id, 50000, datetime(2025, 1, 10, 8))
    newer = _mk_payment(session, st.id, 51000, datetime(2025, 1, 10, 9))
    assert detect_duplicate_payment(session, st.id, None, None, 50000, datetime(2025, 1, 10, 12)).id == newer.id


def test_large_payment_and_duplicate_alerts(session):
    st = _mk_student(session)
    _mk_payment(session, st.id, 1500000, datetime(2025, 1, 10))

    alerts = generate_alerts(
        session,
        PaymentAlertInput(amount=1500000, currency="EUR", payment_date=datetime(2025, 1, 10, 6), student_id=st.id),
    )
    kinds = {a.type: a for a in alerts}
    assert kinds["LARGE_AMOUNT"].level == "WARNING"
    assert "15\u202f000,00 EUR" in kinds["LARGE_AMOUNT"].message
    assert kinds["POTENTIAL_DUPLICATE"].level == "WARNING"


def test_payment_at_threshold_raises_no_alert(session):
    alerts = generate_alerts(
        session, PaymentAlertInput(amount=1000000, currency="EUR", payment_date=datetime(2025, 1, 10), student_id=1)
    )
    assert alerts == []


def test_expense_alerts():
    alerts = generate_alerts(None, ExpenseAlertInput(amount=600000, currency="MAD", supplier="  "))
    assert [(a.level, a.type) for a in alerts] == [("WARNING", "LARGE_EXPENSE"), ("INFO", "NO_SUPPLIER")]

    assert generate_alerts(None, ExpenseAlertInput(amount=500000, currency="MAD", supplier="Orange")) == []


def test_mission_alerts():
    alerts = generate_alerts(None, MissionAlertInput(amount=250000, currency="EUR"))
    assert [(a.level, a.type) for a in alerts] == [("INFO", "LARGE_MISSION"), ("INFO", "NO_HOURS")]

    assert generate_alerts(None, MissionAlertInput(amount=1000, currency="EUR", hours_worked=Decimal("2.5"))) == []


def test_transfer_alerts():
    assert generate_alerts(None, TransferAlertInput(amount=1000000, currency="EUR")) == []
    alerts = generate_alerts(None, TransferAlertInput(amount=1000001, currency="EUR"))
    assert [(a.level, a.type) for a in alerts] == [("WARNING", "LARGE_TRANSFER")]


def test_alert_input_is_tagged_by_operation():
    adapter = TypeAdapter(AlertInput)
    parsed = adapter.validate_python({"operation": "EXPENSE", "amount": 10, "supplier": "Orange"})
    assert isinstance(parsed, ExpenseAlertInput)
    parsed = adapter.validate_python({"operation": "MISSION", "hours_worked": "3"})
    assert isinstance(parsed, MissionAlertInput)
    with pytest.raises(Exception):
        adapter.validate_python({"operation": "REFUND", "amount": 10})
