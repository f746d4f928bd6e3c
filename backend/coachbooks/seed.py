import os
from sqlalchemy import select
from coachbooks.db.session import SessionLocal
from coachbooks.models.bank_account import BankAccount
from coachbooks.services.bank_accounts import create_bank_account

# (account_name, account_type, bank_name, currency, country)
ADMIN_ACCOUNTS = [
    ("CIH Karim", "BANK", "CIH Bank", "MAD", "MA"),
    ("Caisse Epargne Karim", "BANK", "Caisse Epargne", "EUR", "FR"),
    ("Revolut Karim", "BANK", "Revolut", "EUR", "FR"),
    ("LCL Karim", "BANK", "LCL", "EUR", "FR"),
    ("Cash Karim MAD", "CASH", None, "MAD", "MA"),
    ("Cash Karim EUR", "CASH", None, "EUR", "FR"),
    ("Cash Karim USD", "CASH", None, "USD", "US"),
    ("Revolut Simo", "BANK", "Revolut", "EUR", "FR"),
    ("Compte Maroc Pere Simo", "BANK", None, "MAD", "MA"),
    ("Cash Simo MAD", "CASH", None, "MAD", "MA"),
    ("Cash Simo EUR", "CASH", None, "EUR", "FR"),
    ("Revolut Sara", "BANK", "Revolut", "EUR", "FR"),
    ("Compte Maroc Mere Sara", "BANK", None, "MAD", "MA"),
    ("Cash Sara MAD", "CASH", None, "MAD", "MA"),
    ("Cash Sara EUR", "CASH", None, "EUR", "FR"),
]

def main():
    actor = os.environ.get("SEED_ACTOR", "seed")

    db = SessionLocal()
    try:
        for name, kind, bank, currency, country in ADMIN_ACCOUNTS:
            existing = db.execute(select(BankAccount).where(BankAccount.account_name == name)).scalars().first()
            if existing:
                continue
            create_bank_account(
                db,
                account_name=name,
                currency=currency,
                created_by=actor,
                account_type=kind,
                bank_name=bank,
                country=country,
            )
    finally:
        db.close()

if __name__ == "__main__":
    main()
