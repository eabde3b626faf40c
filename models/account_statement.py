"""Account statement models"""

from pydantic import BaseModel
from enum import Enum
from typing import List


class StatementEntryType(str, Enum):
    INVOICE = "invoice"
    PAYMENT = "payment"
    CREDIT_NOTE = "credit_note"
    OPENING_BALANCE = "opening_balance"


class StatementEntry(BaseModel):
    date: str
    reference: str
    description: str
    # Positive = owed by the member, negative = paid or credited
    amount: float
    balance: float = 0.0
    entry_type: StatementEntryType
    entry_id: str


class AccountStatement(BaseModel):
    statement: List[StatementEntry] = []
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    outstanding_balance: float = 0.0


STATEMENT_INVOICE_STATUSES = ["pending", "overdue", "paid", "refunded"]
OUTSTANDING_INVOICE_STATUSES = ["pending", "overdue"]
LEGACY_CREDIT_TYPES = ["credit", "adjustment"]
LEGACY_CREDIT_KINDS = ["payment_credit", "invoice_payment"]
