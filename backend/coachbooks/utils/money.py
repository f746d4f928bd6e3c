from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from coachbooks.core.constants import CURRENCIES

CENTS = Decimal("100")
Q0 = Decimal("1")

# fr-FR grouping: narrow no-break space between thousands, comma before decimals.
GROUP_SEP = "\u202f"
DECIMAL_SEP = ","


def _to_dec(v) -> Decimal:
    return v if isinstance(v, Decimal) else Decimal(str(v))


def to_cents(amount) -> int:
    return int((_to_dec(amount) * CENTS).quantize(Q0, rounding=ROUND_HALF_UP))


def from_cents(amount_in_cents: int) -> Decimal:
    return Decimal(int(amount_in_cents)) / CENTS


def is_supported_currency(currency: str | None) -> bool:
    return currency in CURRENCIES


def format_accounting_amount(amount_in_cents: int, currency: str) -> str:
    amount = from_cents(amount_in_cents)
    formatted = f"{amount:,.2f}".replace(",", "\0").replace(".", DECIMAL_SEP).replace("\0", GROUP_SEP)
    return f"{formatted} {currency}"


def describe_amount(amount_in_cents: int, currency: str) -> str:
    """Short form used in generated ledger descriptions, e.g. ``EUR 1500``."""
    amount = from_cents(amount_in_cents)
    text = f"{amount:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{currency} {text}"
