from sqlalchemy import String, Integer, DateTime, Boolean, func
from sqlalchemy.orm import Mapped, mapped_column
from coachbooks.db.base import Base

class BankAccount(Base):
    __tablename__ = "bank_accounts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_name: Mapped[str] = mapped_column(String(128), index=True)
    account_type: Mapped[str] = mapped_column(String(8), default="BANK")
    bank_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # Fixed at creation; a balance is only meaningful in this currency.
    currency: Mapped[str] = mapped_column(String(3), index=True)
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    iban: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_admin_owned: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[DateTime] = mapped_column(DateTime, server_default=func.now())
