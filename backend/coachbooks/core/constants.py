CURRENCIES = ("EUR", "MAD", "USD")

STUDENT_PAYMENT = "STUDENT_PAYMENT"
MENTOR_PAYMENT = "MENTOR_PAYMENT"
PROFESSOR_PAYMENT = "PROFESSOR_PAYMENT"
EXPENSE = "EXPENSE"
DISTRIBUTION = "DISTRIBUTION"
TRANSFER = "TRANSFER"
FX_EXCHANGE = "FX_EXCHANGE"

TRANSACTION_TYPES = (
    STUDENT_PAYMENT,
    MENTOR_PAYMENT,
    PROFESSOR_PAYMENT,
    EXPENSE,
    DISTRIBUTION,
    TRANSFER,
    FX_EXCHANGE,
)

TRANSACTION_TYPE_LABELS = {
    STUDENT_PAYMENT: "Paiement etudiant",
    MENTOR_PAYMENT: "Paiement mentor",
    PROFESSOR_PAYMENT: "Paiement professeur",
    EXPENSE: "Charge",
    DISTRIBUTION: "Distribution",
    TRANSFER: "Transfert",
    FX_EXCHANGE: "Change de devise",
}

MISSION_STATUSES = ("DRAFT", "PENDING", "VALIDATED", "REJECTED")

SCHEDULE_PENDING = "PENDING"
SCHEDULE_PARTIAL = "PARTIAL"
SCHEDULE_PAID = "PAID"
SCHEDULE_OVERDUE = "OVERDUE"

OPEN_SCHEDULE_STATUSES = (SCHEDULE_PENDING, SCHEDULE_PARTIAL, SCHEDULE_OVERDUE)

QUOTE_STATUSES = ("DRAFT", "SENT", "VALIDATED", "REJECTED", "EXPIRED")

# Months a recurring expense's due date moves forward after each payment.
RECURRING_FREQUENCY_MONTHS = {"MONTHLY": 1, "QUARTERLY": 3, "YEARLY": 12}
