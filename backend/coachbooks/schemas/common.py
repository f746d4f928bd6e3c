from typing import Literal

Currency = Literal["EUR", "MAD", "USD"]

TxType = Literal[
    "STUDENT_PAYMENT",
    "MENTOR_PAYMENT",
    "PROFESSOR_PAYMENT",
    "EXPENSE",
    "DISTRIBUTION",
    "TRANSFER",
    "FX_EXCHANGE",
]

AccountType = Literal["BANK", "CASH"]
