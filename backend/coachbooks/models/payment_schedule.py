from sqlalchemy import Integer, BigInteger, DateTime, func, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class PaymentSchedule(Base):
    __tablename__ = "payment_schedules"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    student_id: Mapped[int | None] = mapped_column(ForeignKey("students.id"), nullable=True, index=True)
    mentor_id: Mapped[int | None] = mapped_column(ForeignKey("mentors.id"), nullable=True, index=True)
    professor_id: Mapped[int | None] = mapped_column(ForeignKey("professors.id"), nullable=True, index=True)
    quote_id: Mapped[int | None] = mapped_column(ForeignKey("quotes.id"), nullable=True, index=True)
    due_date: Mapped[DateTime] = mapped_column(DateTime, index=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3))
    paid_amount: Mapped[int] = mapped_column(BigInteger, default=0)
    status: Mapped[str] = mapped_column(String(16), default="PENDING", index=True)
    paid_date: Mapped[DateTime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
