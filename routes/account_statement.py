"""Account statement route"""

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging

from database.mongodb import get_database
from models.account_statement import (
    AccountStatement,
    LEGACY_CREDIT_KINDS,
    LEGACY_CREDIT_TYPES,
    OUTSTANDING_INVOICE_STATUSES,
    STATEMENT_INVOICE_STATUSES,
)
from models.user import User
from services.account_statement_service import build_statement, to_instant
from services.auth_deps import ensure_self_or_staff, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/account-statement", tags=["account-statement"])


@router.get("", response_model=AccountStatement)
async def get_account_statement(
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Invoices and payments for a member with a running balance"""
    ensure_self_or_staff(current_user, user_id)
    try:
        to_instant(start_date)
        to_instant(end_date)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid date format. Expected ISO datetime or YYYY-MM-DD"
        )

    invoices = await db.invoices.find({
        "user_id": user_id,
        "deleted_at": None,
        "status": {"$in": STATEMENT_INVOICE_STATUSES},
    }).sort("issue_date", 1).to_list(length=5000)

    payments = await db.invoice_payments.find({"user_id": user_id}).sort("paid_at", 1).to_list(length=5000)

    legacy_credits = await db.transactions.find({
        "user_id": user_id,
        "status": "completed",
        "type": {"$in": LEGACY_CREDIT_TYPES},
        "metadata.transaction_type": {"$in": LEGACY_CREDIT_KINDS},
    }).sort("completed_at", 1).to_list(length=5000)

    # Payments may reference invoices outside the statement's status filter
    invoice_ids = list({p["invoice_id"] for p in payments if p.get("invoice_id")})
    invoice_numbers = {}
    if invoice_ids:
        async for doc in db.invoices.find({"_id": {"$in": invoice_ids}}):
            invoice_numbers[doc["_id"]] = doc.get("invoice_number")

    outstanding = [inv for inv in invoices if inv.get("status") in OUTSTANDING_INVOICE_STATUSES]

    statement = build_statement(
        invoices,
        payments,
        legacy_credits,
        invoice_numbers=invoice_numbers,
        start_date=start_date,
        end_date=end_date,
        outstanding_invoices=outstanding,
    )
    logger.info(f"Account statement for {user_id}: {len(statement.statement)} rows, closing {statement.closing_balance}")
    return statement
