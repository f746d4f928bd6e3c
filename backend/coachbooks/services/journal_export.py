from __future__ import annotations

import xlsxwriter
from sqlalchemy import select
from sqlalchemy.orm import Session

from coachbooks.core.constants import CURRENCIES, TRANSACTION_TYPE_LABELS
from coachbooks.models.transaction import Transaction
from coachbooks.schemas.transaction import TransactionFilters
from coachbooks.services.journal import filter_clauses
from coachbooks.utils.money import from_cents
from coachbooks.utils.timezone import naive_now

HEADERS = [
    "Number",
    "Date",
    "Type",
    "Amount",
    "Currency",
    "Source Account",
    "Destination Account",
    "Description",
    "Student",
    "Mentor",
    "Professor",
    "Notes",
]


def _name(party) -> str:
    return party.name if party is not None else ""


def journal_rows(s: Session, filters: TransactionFilters | None = None) -> list[Transaction]:
    clauses = filter_clauses(filters or TransactionFilters())
    return (
        s.execute(
            select(Transaction)
            .where(*clauses)
            .order_by(Transaction.date.asc(), Transaction.created_at.asc(), Transaction.id.asc())
        )
        .scalars()
        .all()
    )


def build_journal_workbook(s: Session, filters: TransactionFilters | None, out_file) -> int:
    """Write the filtered journal (oldest first) to ``out_file``; returns the row count."""
    txs = journal_rows(s, filters)

    wb = xlsxwriter.Workbook(out_file, {"in_memory": True})
    base_font = "Calibri"

    meta_label = wb.add_format({"bold": True, "font_name": base_font, "font_size": 11, "font_color": "#334155"})
    subtle = wb.add_format({"font_name": base_font, "font_size": 10, "font_color": "#64748b"})
    header = wb.add_format(
        {
            "bold": True,
            "font_name": base_font,
            "font_size": 11,
            "bg_color": "#F1F5F9",
            "border": 1,
            "align": "center",
            "valign": "vcenter",
        }
    )
    date_fmt = wb.add_format({"font_name": base_font, "font_size": 11, "num_format": "yyyy-mm-dd", "border": 1})
    money2 = wb.add_format(
        {"font_name": base_font, "font_size": 11, "num_format": "#,##0.00", "border": 1, "align": "right"}
    )
    text_cell = wb.add_format({"font_name": base_font, "font_size": 11, "border": 1, "align": "left"})
    stripe_text = wb.add_format({"bg_color": "#FBFDFF", "align": "left"})

    ws = wb.add_worksheet("Journal")
    ws.set_column(0, 0, 16)  # Number
    ws.set_column(1, 1, 12)  # Date
    ws.set_column(2, 2, 20)  # Type
    ws.set_column(3, 4, 14)  # Amount / Currency
    ws.set_column(5, 6, 24)  # Accounts
    ws.set_column(7, 7, 36)  # Description
    ws.set_column(8, 10, 20)  # Parties
    ws.set_column(11, 11, 30)  # Notes

    ws.write(0, 0, "Journal", meta_label)
    ws.write(0, 1, f"{len(txs)} entries", subtle)
    ws.write(1, 0, "Generated", meta_label)
    ws.write(1, 1, naive_now().strftime("%Y-%m-%d %H:%M"), subtle)

    ws.set_row(3, 18)
    for c, h in enumerate(HEADERS):
        ws.write(3, c, h, header)
    ws.freeze_panes(4, 1)

    r = 4
    for t in txs:
        ws.write(r, 0, t.transaction_number, text_cell)
        ws.write_datetime(r, 1, t.date, date_fmt)
        ws.write(r, 2, TRANSACTION_TYPE_LABELS.get(t.type, t.type), text_cell)
        ws.write_number(r, 3, float(from_cents(t.amount)), money2)
        ws.write(r, 4, t.currency, text_cell)
        ws.write(r, 5, t.source_account.account_name if t.source_account else "", text_cell)
        ws.write(r, 6, t.destination_account.account_name if t.destination_account else "", text_cell)
        ws.write(r, 7, t.description or "", text_cell)
        ws.write(r, 8, _name(t.student), text_cell)
        ws.write(r, 9, _name(t.mentor), text_cell)
        ws.write(r, 10, _name(t.professor), text_cell)
        ws.write(r, 11, t.notes or "", text_cell)
        r += 1

    last_row = r - 1
    if last_row >= 4:
        ws.autofilter(3, 0, last_row, len(HEADERS) - 1)
        ws.conditional_format(
            4, 0, last_row, len(HEADERS) - 1, {"type": "formula", "criteria": "=MOD(ROW(),2)=0", "format": stripe_text}
        )

        # Per-currency totals; amounts in different currencies are never summed together.
        r += 1
        for cur in CURRENCIES:
            ws.write(r, 2, f"Total {cur}", meta_label)
            ws.write_formula(r, 3, f'=SUMIF(E5:E{last_row + 1},"{cur}",D5:D{last_row + 1})', money2)
            r += 1

    wb.close()
    return len(txs)
