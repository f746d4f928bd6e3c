from sqlalchemy import Integer, BigInteger, DateTime, func, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class Distribution(Base):
    __tablename__ = "distributions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    beneficiary: Mapped[str] = mapped_column(String(128))
    amount: Mapped[int] = mapped_column(BigInteger)
    currency: Mapped[str] = mapped_column(String(3))
    distribution_date: Mapped[DateTime] = mapped_column(DateTime)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
