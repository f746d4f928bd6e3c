# Import every model so Base.metadata is complete for create_all and Alembic.
from coachbooks.db.base import Base
from coachbooks.models.audit_log import AuditLog
from coachbooks.models.bank_account import BankAccount
from coachbooks.models.distribution import Distribution
from coachbooks.models.expense import Expense
from coachbooks.models.mission import Mission
from coachbooks.models.party import Mentor, Professor, Student
from coachbooks.models.payment import Payment
from coachbooks.models.payment_allocation import PaymentAllocation
from coachbooks.models.payment_schedule import PaymentSchedule
from coachbooks.models.quote import Quote
from coachbooks.models.recurring_expense import RecurringExpense
from coachbooks.models.reference_counter import ReferenceCounter
from coachbooks.models.transaction import Transaction

__all__ = [
    "Base",
    "AuditLog",
    "BankAccount",
    "Distribution",
    "Expense",
    "Mission",
    "Mentor",
    "Professor",
    "Student",
    "Payment",
    "PaymentAllocation",
    "PaymentSchedule",
    "Quote",
    "RecurringExpense",
    "ReferenceCounter",
    "Transaction",
]
