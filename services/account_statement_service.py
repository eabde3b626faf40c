"""
Account Statement Service

Merges a member's issued invoices (debits) and payments (credits) into a
statement with a running balance. There is no stored account balance; closing
and outstanding balances are computed on every request.

Invoice creation also writes audit rows to `transactions`, so transactions are
only read for legacy payment credits that never got an `invoice_payments` row.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Set
import logging

from models.account_statement import AccountStatement, StatementEntry, StatementEntryType

logger = logging.getLogger(__name__)


def round_money(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def to_number(value) -> float:
    """Amounts may arrive as numbers or numeric strings"""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def to_instant(value) -> Optional[datetime]:
    """datetime, ISO timestamp or YYYY-MM-DD (midnight UTC) -> aware datetime"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if len(text) == 10:
        text = f"{text}T00:00:00+00:00"
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _iso(value) -> str:
    instant = to_instant(value)
    return instant.isoformat() if instant else ""


def _in_range(value, start: Optional[datetime], end: Optional[datetime]) -> bool:
    instant = to_instant(value)
    if instant is None:
        return start is None and end is None
    if start and instant < start:
        return False
    if end and instant > end:
        return False
    return True


# ==================== ENTRY BUILDERS ====================

def invoice_entry(invoice: dict) -> StatementEntry:
    number = invoice.get("invoice_number") or str(invoice["_id"])[:8]
    reference = f"{number} · {invoice['reference']}" if invoice.get("reference") else number
    return StatementEntry(
        date=_iso(invoice.get("issue_date") or invoice.get("created_at")),
        reference=reference,
        description="Invoice issued",
        amount=to_number(invoice.get("total_amount")),
        entry_type=StatementEntryType.INVOICE,
        entry_id=str(invoice["_id"]),
    )


def payment_entry(payment: dict, invoice_number: Optional[str] = None) -> StatementEntry:
    bits = ["PAY"]
    if invoice_number:
        bits.append(f"INV {invoice_number}")
    if payment.get("payment_reference"):
        bits.append(f"REF {payment['payment_reference']}")
    return StatementEntry(
        date=_iso(payment.get("paid_at") or payment.get("created_at")),
        reference=" · ".join(bits),
        description=f"Payment received ({payment.get('payment_method')})",
        amount=-abs(to_number(payment.get("amount"))),
        entry_type=StatementEntryType.PAYMENT,
        entry_id=str(payment["_id"]),
    )


def legacy_credit_entry(transaction: dict) -> StatementEntry:
    meta = transaction.get("metadata") or {}
    bits = ["PAY"]
    if isinstance(meta.get("payment_number"), str):
        bits.append(meta["payment_number"])
    if isinstance(meta.get("invoice_number"), str):
        bits.append(f"INV {meta['invoice_number']}")
    if isinstance(meta.get("transaction_type"), str):
        bits.append(meta["transaction_type"])

    description = transaction.get("description")
    return StatementEntry(
        date=_iso(transaction.get("completed_at") or datetime.now(timezone.utc)),
        reference=" · ".join(bits),
        description=description if isinstance(description, str) and description else "Payment received",
        amount=-abs(to_number(transaction.get("amount"))),
        entry_type=StatementEntryType.PAYMENT,
        entry_id=str(transaction["_id"]),
    )


_UNDATED = datetime.max.replace(tzinfo=timezone.utc)


def _sort_key(entry: StatementEntry):
    # Undated entries last; debits before credits on the same timestamp
    instant = to_instant(entry.date) or _UNDATED
    return (instant, 0 if entry.entry_type == StatementEntryType.INVOICE else 1)


# ==================== STATEMENT ====================

def build_statement(
    invoices: Iterable[dict],
    payments: Iterable[dict],
    legacy_credits: Iterable[dict] = (),
    invoice_numbers: Optional[dict] = None,
    start_date=None,
    end_date=None,
    outstanding_invoices: Iterable[dict] = (),
    opening_balance: float = 0.0,
) -> AccountStatement:
    """
    Build the statement for one member.

    `invoice_numbers` maps invoice id -> invoice number for payment references.
    `start_date`/`end_date` bound the entries (inclusive). `outstanding_invoices`
    are the member's open invoices regardless of the date range.
    """
    invoice_numbers = invoice_numbers or {}
    start = to_instant(start_date)
    end = to_instant(end_date)
    payments = list(payments)

    linked: Set[str] = {p["transaction_id"] for p in payments if p.get("transaction_id")}

    entries: List[StatementEntry] = []
    for invoice in invoices:
        if _in_range(invoice.get("issue_date") or invoice.get("created_at"), start, end):
            entries.append(invoice_entry(invoice))
    for payment in payments:
        if _in_range(payment.get("paid_at") or payment.get("created_at"), start, end):
            entries.append(payment_entry(payment, invoice_numbers.get(payment.get("invoice_id"))))
    for transaction in legacy_credits:
        if transaction["_id"] in linked:
            continue
        if _in_range(transaction.get("completed_at"), start, end):
            entries.append(legacy_credit_entry(transaction))

    entries.sort(key=_sort_key)

    statement: List[StatementEntry] = []
    running = round_money(opening_balance)
    if entries:
        statement.append(StatementEntry(
            date=entries[0].date,
            reference="OPEN",
            description="Opening balance",
            amount=0.0,
            balance=running,
            entry_type=StatementEntryType.OPENING_BALANCE,
            entry_id="opening_balance",
        ))
    for entry in entries:
        running = round_money(running + entry.amount)
        statement.append(entry.model_copy(update={"balance": running}))

    outstanding = sum(to_number(inv.get("balance_due")) for inv in outstanding_invoices)
    return AccountStatement(
        statement=statement,
        opening_balance=round_money(opening_balance),
        closing_balance=running,
        outstanding_balance=round_money(outstanding),
    )
