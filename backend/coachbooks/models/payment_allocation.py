from sqlalchemy import Integer, BigInteger, DateTime, func, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class PaymentAllocation(Base):
    __tablename__ = "payment_allocations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    payment_id: Mapped[int] = mapped_column(ForeignKey("payments.id", ondelete="CASCADE"), index=True)
    schedule_id: Mapped[int] = mapped_column(ForeignKey("payment_schedules.id", ondelete="CASCADE"), index=True)
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3))
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
