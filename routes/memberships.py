"""Membership routes - history, summary, create and renew"""

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timedelta, timezone
from uuid import uuid4
import logging

from config import Settings, get_settings
from database.mongodb import get_database
from models.memberships import MembershipAction, MembershipCreate, MembershipRenew
from models.user import User
from services.auth_deps import ensure_self_or_staff, get_current_user, require_staff
from services.calendar_dates import format_calendar_date, parse_calendar_date, today_in
from services import membership_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memberships", tags=["memberships"])


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _parse(value, settings: Settings, field: str):
    try:
        return parse_calendar_date(value, settings.school_timezone)
    except ValueError:
        raise _bad_request(f"Invalid {field}")


async def _load_relations(db: AsyncIOMotorDatabase, memberships: list) -> dict:
    """Attach membership type and invoice summary; return invoice id -> status"""
    type_ids = list({m["membership_type_id"] for m in memberships if m.get("membership_type_id")})
    invoice_ids = list({m["invoice_id"] for m in memberships if m.get("invoice_id")})

    types = {}
    if type_ids:
        async for doc in db.membership_types.find({"_id": {"$in": type_ids}}):
            types[doc["_id"]] = {"id": doc["_id"], "name": doc.get("name"), "code": doc.get("code"),
                                 "duration_months": doc.get("duration_months")}
    invoices = {}
    if invoice_ids:
        async for doc in db.invoices.find({"_id": {"$in": invoice_ids}}):
            invoices[doc["_id"]] = {"id": doc["_id"], "status": doc.get("status"),
                                    "invoice_number": doc.get("invoice_number")}

    for membership in memberships:
        membership["id"] = membership.pop("_id")
        membership["membership_type"] = types.get(membership.get("membership_type_id"))
        membership["invoice"] = invoices.get(membership.get("invoice_id"))
    return {invoice_id: inv["status"] for invoice_id, inv in invoices.items()}


@router.get("")
async def get_memberships(
    user_id: str,
    summary: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Membership history newest first, or the summary used by the member's tab"""
    ensure_self_or_staff(current_user, user_id)

    cursor = db.memberships.find({"user_id": user_id}).sort("start_date", -1)
    memberships = await cursor.to_list(length=200)
    invoice_statuses = await _load_relations(db, memberships)

    if summary:
        return {"summary": membership_service.summarize(
            memberships, invoice_statuses, today_in(settings.school_timezone), settings.school_timezone
        )}
    return {"memberships": memberships}


async def _get_membership_type(db: AsyncIOMotorDatabase, membership_type_id: str) -> dict:
    membership_type = await db.membership_types.find_one({"_id": membership_type_id})
    if not membership_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership type not found")
    return membership_type


async def _create(db, data: MembershipCreate, current_user: User, settings: Settings) -> dict:
    member = await db.users.find_one({"_id": data.user_id})
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    await _get_membership_type(db, data.membership_type_id)

    year = membership_service.MembershipYear.from_settings(settings)
    start = _parse(data.start_date, settings, "start_date") or today_in(settings.school_timezone)
    expiry = _parse(data.custom_expiry_date, settings, "custom_expiry_date") \
        or membership_service.default_membership_expiry(year, start)
    if expiry < start:
        raise _bad_request("Expiry date must be on or after the start date")

    return {
        "user_id": data.user_id,
        "membership_type_id": data.membership_type_id,
        "start_date": format_calendar_date(start),
        "expiry_date": format_calendar_date(expiry),
        "auto_renew": data.auto_renew,
        "grace_period_days": settings.default_grace_period_days,
        "notes": data.notes,
    }


async def _renew(db, data: MembershipRenew, current_user: User, settings: Settings) -> dict:
    current = await db.memberships.find_one({"_id": data.membership_id})
    if not current:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")
    membership_type_id = data.membership_type_id or current["membership_type_id"]
    await _get_membership_type(db, membership_type_id)

    year = membership_service.MembershipYear.from_settings(settings)
    current_expiry = parse_calendar_date(current["expiry_date"], settings.school_timezone)
    start = current_expiry + timedelta(days=1)
    expiry = _parse(data.custom_expiry_date, settings, "custom_expiry_date") \
        or membership_service.renewal_expiry(year, current_expiry)

    await db.memberships.update_one({"_id": current["_id"]}, {"$set": {"is_active": False}})
    return {
        "user_id": current["user_id"],
        "membership_type_id": membership_type_id,
        "start_date": format_calendar_date(start),
        "expiry_date": format_calendar_date(expiry),
        "auto_renew": current.get("auto_renew", False) if data.auto_renew is None else data.auto_renew,
        "grace_period_days": current.get("grace_period_days") or settings.default_grace_period_days,
        "notes": data.notes,
        "renewed_from": current["_id"],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_or_renew_membership(
    data: MembershipAction,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Create a membership, or renew one into the next membership year"""
    if isinstance(data, MembershipRenew):
        doc = await _renew(db, data, current_user, settings)
    else:
        doc = await _create(db, data, current_user, settings)

    now = datetime.now(timezone.utc)
    doc.update({
        "_id": uuid4().hex,
        "is_active": True,
        "invoice_id": None,
        "purchased_date": now,
        "updated_by": current_user.id,
        "created_at": now,
        "updated_at": now,
    })
    await db.memberships.insert_one(doc)
    logger.info(f"Membership {doc['_id']} ({data.action}) for user {doc['user_id']} until {doc['expiry_date']}")

    doc["id"] = doc.pop("_id")
    return {"membership": doc}
