from sqlalchemy import Integer, BigInteger, DateTime, func, ForeignKey, Numeric, String, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from coachbooks.db.base import Base
from coachbooks.models.bank_account import BankAccount
from coachbooks.models.party import Mentor, Professor, Student

class Transaction(Base):
    __tablename__ = "transactions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    transaction_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    date: Mapped[DateTime] = mapped_column(DateTime, index=True)
    type: Mapped[str] = mapped_column(String(24), index=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3), index=True)

    source_account_id: Mapped[int | None] = mapped_column(ForeignKey("bank_accounts.id"), nullable=True, index=True)
    destination_account_id: Mapped[int | None] = mapped_column(ForeignKey("bank_accounts.id"), nullable=True, index=True)

    payment_id: Mapped[int | None] = mapped_column(ForeignKey("payments.id"), nullable=True, index=True)
    expense_id: Mapped[int | None] = mapped_column(ForeignKey("expenses.id"), nullable=True, index=True)
    distribution_id: Mapped[int | None] = mapped_column(ForeignKey("distributions.id"), nullable=True, index=True)
    mission_id: Mapped[int | None] = mapped_column(ForeignKey("missions.id"), nullable=True, index=True)
    quote_id: Mapped[int | None] = mapped_column(ForeignKey("quotes.id"), nullable=True, index=True)
    payment_schedule_id: Mapped[int | None] = mapped_column(ForeignKey("payment_schedules.id"), nullable=True, index=True)

    student_id: Mapped[int | None] = mapped_column(ForeignKey("students.id"), nullable=True, index=True)
    mentor_id: Mapped[int | None] = mapped_column(ForeignKey("mentors.id"), nullable=True, index=True)
    professor_id: Mapped[int | None] = mapped_column(ForeignKey("professors.id"), nullable=True, index=True)

    linked_transaction_id: Mapped[int | None] = mapped_column(ForeignKey("transactions.id"), nullable=True)
    exchange_rate: Mapped[float | None] = mapped_column(Numeric(18, 8), nullable=True)
    fx_fees: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())

    source_account = relationship(BankAccount, foreign_keys=[source_account_id], lazy="joined")
    destination_account = relationship(BankAccount, foreign_keys=[destination_account_id], lazy="joined")
    student = relationship(Student, lazy="joined")
    mentor = relationship(Mentor, lazy="joined")
    professor = relationship(Professor, lazy="joined")


Index("ix_transactions_type_date", Transaction.type, Transaction.date)
