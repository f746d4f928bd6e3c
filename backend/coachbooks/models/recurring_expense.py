from sqlalchemy import Integer, BigInteger, Boolean, DateTime, func, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class RecurringExpense(Base):
    __tablename__ = "recurring_expenses"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128))
    supplier: Mapped[str | None] = mapped_column(String(128), nullable=True)
    category: Mapped[str] = mapped_column(String(64), index=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3))
    # MONTHLY | QUARTERLY | YEARLY
    frequency: Mapped[str] = mapped_column(String(16))
    next_due_date: Mapped[DateTime] = mapped_column(DateTime, index=True)
    last_paid_date: Mapped[DateTime | None] = mapped_column(DateTime, nullable=True)
    paying_account_id: Mapped[int | None] = mapped_column(ForeignKey("bank_accounts.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
