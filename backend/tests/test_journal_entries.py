from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coachbooks.core.errors import LedgerValidationError
from coachbooks.db.metadata import (
    AuditLog,
    BankAccount,
    Base,
    Distribution,
    Expense,
    Mentor,
    Mission,
    Payment,
    Student,
    Transaction,
)
from coachbooks.schemas.transaction import FxExchangeCreate, TransactionFilters, TransferCreate
from coachbooks.services.journal import (
    calculate_account_balance,
    calculate_totals_by_currency,
    create_distribution_transaction,
    create_expense_transaction,
    create_fx_transactions,
    create_mission_payment_transaction,
    create_payment_transaction,
    create_transfer_transaction,
    get_transaction,
    get_transactions,
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


def _mk_account(session, name: str, currency: str, is_active: bool = True) -> BankAccount:
    acc = BankAccount(account_name=name, account_type="BANK", currency=currency, is_active=is_active)
    session.add(acc)
    session.commit()
    return acc


def _mk_student(session, name: str = "Yasmine") -> Student:
    st = Student(name=name, email=f"{name.lower()}@example.com")
    session.add(st)
    session.commit()
    return st


def _mk_payment(session, account_id, amount: int, currency: str = "EUR", **party) -> Payment:
    p = Payment(
        bank_account_id=account_id,
        amount=amount,
        currency=currency,
        payment_date=datetime(2025, 1, 10, 9, 30),
        **party,
    )
    session.add(p)
    session.commit()
    return p


def _tx_count(session) -> int:
    return session.execute(select(func.count()).select_from(Transaction)).scalar_one()


def test_student_payment_credits_destination(session):
    acc = _mk_account(session, "Revolut", "EUR")
    st = _mk_student(session)
    p = _mk_payment(session, acc.id, 150000, student_id=st.id)

    t = create_payment_transaction(session, p, created_by="karim")

    assert t.type == "STUDENT_PAYMENT"
    assert t.destination_account_id == acc.id
    assert t.source_account_id is None
    assert t.transaction_number.startswith("TXN-")
    assert t.payment_id == p.id
    assert t.description == "Payment received - EUR 1500"
    assert calculate_account_balance(session, acc.id) == 150000


def test_mentor_payment_type_wins(session):
    acc = _mk_account(session, "CIH", "MAD")
    mentor = Mentor(name="Omar")
    session.add(mentor)
    session.commit()
    p = _mk_payment(session, acc.id, 50000, currency="MAD", mentor_id=mentor.id)

    t = create_payment_transaction(session, p, created_by="karim")
    assert t.type == "MENTOR_PAYMENT"


def test_payment_without_account_is_rejected(session):
    p = Payment(amount=1000, currency="EUR", payment_date=datetime(2025, 1, 10))
    with pytest.raises(LedgerValidationError) as ei:
        create_payment_transaction(session, p, created_by="karim")
    assert ei.value.code == "missing_receiving_account"
    assert _tx_count(session) == 0


def test_expense_debits_source_and_keeps_supplier(session):
    acc = _mk_account(session, "LCL", "EUR")
    e = Expense(
        category="software",
        supplier="Notion",
        paying_account_id=acc.id,
        amount=2400,
        currency="EUR",
        expense_date=datetime(2025, 2, 1),
    )
    session.add(e)
    session.commit()

    t = create_expense_transaction(session, e, created_by="karim")

    assert t.type == "EXPENSE"
    assert t.source_account_id == acc.id
    assert t.destination_account_id is None
    assert t.notes == "Supplier: Notion"
    assert t.description == "Expense - software"
    assert calculate_account_balance(session, acc.id) == -2400


def test_expense_without_paying_account(session):
    e = Expense(category="rent", amount=1000, currency="EUR", expense_date=datetime(2025, 2, 1))
    with pytest.raises(LedgerValidationError) as ei:
        create_expense_transaction(session, e, created_by="karim")
    assert ei.value.code == "missing_paying_account"


def test_transfer_moves_money_between_same_currency_accounts(session):
    a = _mk_account(session, "Revolut", "EUR")
    b = _mk_account(session, "LCL", "EUR")

    t = create_transfer_transaction(
        session,
        TransferCreate(source_account_id=a.id, destination_account_id=b.id, amount=50000, currency="EUR", created_by="karim"),
    )

    assert t.type == "TRANSFER"
    assert calculate_account_balance(session, a.id) == -50000
    assert calculate_account_balance(session, b.id) == 50000


def test_transfer_currency_mismatch_writes_nothing(session):
    a = _mk_account(session, "Revolut", "EUR")
    c = _mk_account(session, "CIH", "MAD")

    with pytest.raises(LedgerValidationError) as ei:
        create_transfer_transaction(
            session,
            TransferCreate(source_account_id=a.id, destination_account_id=c.id, amount=100, currency="EUR", created_by="karim"),
        )
    assert ei.value.code == "currency_mismatch"
    assert "CIH" in ei.value.message
    assert _tx_count(session) == 0


def test_transfer_to_same_account_is_rejected(session):
    a = _mk_account(session, "Revolut", "EUR")
    with pytest.raises(LedgerValidationError) as ei:
        create_transfer_transaction(
            session,
            TransferCreate(source_account_id=a.id, destination_account_id=a.id, amount=100, currency="EUR", created_by="karim"),
        )
    assert ei.value.code == "same_account"
    assert _tx_count(session) == 0


def test_transfer_from_inactive_account_is_rejected(session):
    a = _mk_account(session, "Old", "EUR", is_active=False)
    b = _mk_account(session, "LCL", "EUR")
    with pytest.raises(LedgerValidationError) as ei:
        create_transfer_transaction(
            session,
            TransferCreate(source_account_id=a.id, destination_account_id=b.id, amount=100, currency="EUR", created_by="karim"),
        )
    assert ei.value.code == "source_account_invalid"


def _fx(src_id, dst_id, **overrides):
    data = dict(
        source_account_id=src_id,
        destination_account_id=dst_id,
        source_amount=100000,
        source_currency="EUR",
        destination_amount=1080000,
        destination_currency="MAD",
        exchange_rate=Decimal("10.8"),
        fx_fees=500,
        created_by="karim",
    )
    data.update(overrides)
    return FxExchangeCreate(**data)


def test_fx_exchange_writes_two_linked_legs(session):
    eur = _mk_account(session, "Revolut", "EUR")
    mad = _mk_account(session, "CIH", "MAD")

    leg1, leg2 = create_fx_transactions(session, _fx(eur.id, mad.id))

    assert leg1.type == leg2.type == "FX_EXCHANGE"
    assert leg1.source_account_id == eur.id and leg1.destination_account_id is None
    assert leg2.destination_account_id == mad.id and leg2.source_account_id is None
    assert leg2.linked_transaction_id == leg1.id
    assert leg1.linked_transaction_id is None
    assert leg1.fx_fees == 500
    assert leg2.fx_fees is None
    assert leg1.exchange_rate == leg2.exchange_rate == Decimal("10.8")
    assert leg1.date == leg2.date

    seq1 = int(leg1.transaction_number.rsplit("-", 1)[1])
    seq2 = int(leg2.transaction_number.rsplit("-", 1)[1])
    assert seq2 == seq1 + 1

    assert calculate_account_balance(session, eur.id) == -100000
    assert calculate_account_balance(session, mad.id) == 1080000


def test_fx_same_currency_is_rejected(session):
    a = _mk_account(session, "Revolut", "EUR")
    b = _mk_account(session, "LCL", "EUR")
    with pytest.raises(LedgerValidationError) as ei:
        create_fx_transactions(session, _fx(a.id, b.id, destination_currency="EUR"))
    assert ei.value.code == "fx_same_currency"
    assert _tx_count(session) == 0


def test_fx_destination_currency_mismatch_writes_nothing(session):
    eur = _mk_account(session, "Revolut", "EUR")
    usd = _mk_account(session, "Cash USD", "USD")
    with pytest.raises(LedgerValidationError) as ei:
        create_fx_transactions(session, _fx(eur.id, usd.id))
    assert ei.value.code == "currency_mismatch"
    assert _tx_count(session) == 0


def test_fx_rejects_non_positive_rate(session):
    eur = _mk_account(session, "Revolut", "EUR")
    mad = _mk_account(session, "CIH", "MAD")
    with pytest.raises(LedgerValidationError) as ei:
        create_fx_transactions(session, _fx(eur.id, mad.id, exchange_rate=Decimal("0")))
    assert ei.value.code == "invalid_exchange_rate"


def _mk_mission(session, status: str = "VALIDATED") -> Mission:
    mentor = Mentor(name="Omar")
    session.add(mentor)
    session.commit()
    m = Mission(title="Essay review", status=status, mentor_id=mentor.id, amount=30000, currency="EUR")
    session.add(m)
    session.commit()
    return m


def test_mission_is_paid_exactly_once(session):
    acc = _mk_account(session, "Revolut", "EUR")
    m = _mk_mission(session)

    t = create_mission_payment_transaction(session, m, acc.id, created_by="karim")
    assert t.type == "MENTOR_PAYMENT"
    assert t.source_account_id == acc.id
    assert t.mission_id == m.id

    session.refresh(m)
    assert m.paid_at is not None

    with pytest.raises(LedgerValidationError) as ei:
        create_mission_payment_transaction(session, m, acc.id, created_by="karim")
    assert ei.value.code == "mission_already_paid"
    assert _tx_count(session) == 1


def test_pending_mission_cannot_be_paid(session):
    acc = _mk_account(session, "Revolut", "EUR")
    m = _mk_mission(session, status="PENDING")
    with pytest.raises(LedgerValidationError) as ei:
        create_mission_payment_transaction(session, m, acc.id, created_by="karim")
    assert ei.value.code == "mission_not_validated"
    assert _tx_count(session) == 0


def test_distribution_has_no_destination(session):
    acc = _mk_account(session, "Revolut", "EUR")
    d = Distribution(beneficiary="Karim", amount=200000, currency="EUR", distribution_date=datetime(2025, 3, 1))
    session.add(d)
    session.commit()

    t = create_distribution_transaction(session, d.id, acc.id, 200000, "EUR", created_by="karim")
    assert t.type == "DISTRIBUTION"
    assert t.destination_account_id is None
    assert t.distribution_id == d.id
    assert calculate_account_balance(session, acc.id) == -200000


def test_every_entry_is_audited(session):
    acc = _mk_account(session, "Revolut", "EUR")
    st = _mk_student(session)
    p = _mk_payment(session, acc.id, 1000, student_id=st.id)
    t = create_payment_transaction(session, p, created_by="sara")

    row = session.execute(select(AuditLog).where(AuditLog.entity_type == "transaction")).scalar_one()
    assert row.actor == "sara"
    assert row.action == "journal.student_payment"
    assert row.reference == t.transaction_number


def test_balances_match_entry_totals(session):
    eur = _mk_account(session, "Revolut", "EUR")
    eur2 = _mk_account(session, "LCL", "EUR")
    mad = _mk_account(session, "CIH", "MAD")
    st = _mk_student(session)

    create_payment_transaction(session, _mk_payment(session, eur.id, 300000, student_id=st.id), created_by="k")
    create_transfer_transaction(
        session,
        TransferCreate(source_account_id=eur.id, destination_account_id=eur2.id, amount=70000, currency="EUR", created_by="k"),
    )
    create_fx_transactions(session, _fx(eur.id, mad.id))

    incoming = session.execute(select(func.sum(Transaction.amount)).where(Transaction.destination_account_id.isnot(None))).scalar_one()
    outgoing = session.execute(select(func.sum(Transaction.amount)).where(Transaction.source_account_id.isnot(None))).scalar_one()
    total = sum(calculate_account_balance(session, a.id) for a in (eur, eur2, mad))
    assert total == incoming - outgoing

    assert calculate_account_balance(session, eur.id) == 300000 - 70000 - 100000
    assert calculate_account_balance(session, eur2.id) == 70000


def test_totals_by_currency_skip_inactive_accounts(session):
    eur = _mk_account(session, "Revolut", "EUR")
    old = _mk_account(session, "Old", "EUR")
    st = _mk_student(session)
    create_payment_transaction(session, _mk_payment(session, eur.id, 1000, student_id=st.id), created_by="k")
    create_payment_transaction(session, _mk_payment(session, old.id, 5000, student_id=st.id), created_by="k")

    old.is_active = False
    session.commit()

    assert calculate_totals_by_currency(session) == {"EUR": 1000, "MAD": 0, "USD": 0}


def test_get_transactions_filters_and_pages(session):
    eur = _mk_account(session, "Revolut", "EUR")
    eur2 = _mk_account(session, "LCL", "EUR")
    mad = _mk_account(session, "CIH", "MAD")

    for day, (src, dst) in enumerate([(eur, eur2), (eur2, eur), (eur, eur2)], start=1):
        create_transfer_transaction(
            session,
            TransferCreate(
                source_account_id=src.id,
                destination_account_id=dst.id,
                amount=1000 * day,
                currency="EUR",
                date=datetime(2025, 1, day),
                created_by="k",
            ),
        )
    create_fx_transactions(session, _fx(eur.id, mad.id, date=datetime(2025, 2, 1)))

    page = get_transactions(session, TransactionFilters(type="TRANSFER", limit=2))
    assert page["total"] == 3
    assert page["has_more"] is True
    assert [t.amount for t in page["transactions"]] == [3000, 2000]
    assert page["transactions"][0].source_account.account_name == "Revolut"

    rest = get_transactions(session, TransactionFilters(type="TRANSFER", limit=2, offset=2))
    assert [t.amount for t in rest["transactions"]] == [1000]
    assert rest["has_more"] is False

    # An account matches on either side of the entry.
    assert get_transactions(session, TransactionFilters(account_id=eur2.id))["total"] == 3
    assert get_transactions(session, TransactionFilters(currency="MAD"))["total"] == 1

    window = get_transactions(
        session, TransactionFilters(start_date=datetime(2025, 1, 2), end_date=datetime(2025, 1, 31))
    )
    assert window["total"] == 2


def test_get_transaction_not_found(session):
    from coachbooks.core.errors import LedgerNotFoundError

    with pytest.raises(LedgerNotFoundError) as ei:
        get_transaction(session, 404)
    assert ei.value.code == "tx_not_found"
    assert ei.value.status_code == 404


def test_aware_date_bounds_are_read_in_business_time(session):
    from datetime import timezone

    eur = _mk_account(session, "Revolut", "EUR")
    eur2 = _mk_account(session, "LCL", "EUR")
    # 2025-01-10T09:00Z is stored as 10:00 Casablanca time.
    create_transfer_transaction(
        session,
        TransferCreate(
            source_account_id=eur.id,
            destination_account_id=eur2.id,
            amount=1000,
            currency="EUR",
            date=datetime(2025, 1, 10, 10, 0),
            created_by="k",
        ),
    )

    bound = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)
    assert get_transactions(session, TransactionFilters(end_date=bound))["total"] == 1
    assert get_transactions(session, TransactionFilters(start_date=bound))["total"] == 1
    assert get_transactions(session, TransactionFilters(start_date=datetime(2025, 1, 10, 9, 30, tzinfo=timezone.utc)))["total"] == 0


def test_mission_loaded_by_two_sessions_is_paid_once(tmp_path):
    eng = create_engine(f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}", future=True)
    Base.metadata.create_all(eng)
    Session = sessionmaker(bind=eng, autoflush=False, autocommit=False, future=True)
    try:
        with Session() as setup:
            acc_id = _mk_account(setup, "Revolut", "EUR").id
            mission_id = _mk_mission(setup).id

        with Session() as first, Session() as second:
            m1 = first.get(Mission, mission_id)
            m2 = second.get(Mission, mission_id)
            assert m1.paid_at is None and m2.paid_at is None

            create_mission_payment_transaction(first, m1, acc_id, created_by="karim")
            with pytest.raises(LedgerValidationError) as ei:
                create_mission_payment_transaction(second, m2, acc_id, created_by="sara")
            assert ei.value.code == "mission_already_paid"

        with Session() as check:
            payouts = check.execute(
                select(func.count()).select_from(Transaction).where(Transaction.mission_id == mission_id)
            ).scalar_one()
            assert payouts == 1
            assert check.get(Mission, mission_id).paid_at is not None
    finally:
        eng.dispose()
