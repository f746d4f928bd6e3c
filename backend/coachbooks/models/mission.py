from sqlalchemy import Integer, BigInteger, DateTime, func, ForeignKey, String, Text, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class Mission(Base):
    __tablename__ = "missions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(256))
    # DRAFT | PENDING -> VALIDATED -> paid (paid_at set). REJECTED is terminal.
    status: Mapped[str] = mapped_column(String(16), default="PENDING", index=True)
    mentor_id: Mapped[int | None] = mapped_column(ForeignKey("mentors.id"), nullable=True, index=True)
    professor_id: Mapped[int | None] = mapped_column(ForeignKey("professors.id"), nullable=True, index=True)
    student_id: Mapped[int | None] = mapped_column(ForeignKey("students.id"), nullable=True)
    hours_worked: Mapped[float | None] = mapped_column(Numeric(8, 2), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    validated_at: Mapped[DateTime | None] = mapped_column(DateTime, nullable=True)
    paid_at: Mapped[DateTime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
