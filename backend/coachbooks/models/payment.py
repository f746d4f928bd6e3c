from sqlalchemy import Integer, BigInteger, DateTime, func, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class Payment(Base):
    __tablename__ = "payments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[int | None] = mapped_column(ForeignKey("students.id"), nullable=True, index=True)
    mentor_id: Mapped[int | None] = mapped_column(ForeignKey("mentors.id"), nullable=True, index=True)
    professor_id: Mapped[int | None] = mapped_column(ForeignKey("professors.id"), nullable=True, index=True)
    bank_account_id: Mapped[int | None] = mapped_column(ForeignKey("bank_accounts.id"), nullable=True, index=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3))
    payment_date: Mapped[DateTime] = mapped_column(DateTime, index=True)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
