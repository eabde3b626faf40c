"""Member profile routes (contact details and pilot credentials)"""

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timezone
import logging

from config import Settings, get_settings
from database.mongodb import get_database
from models.members import MEMBER_DATE_FIELDS, MemberUpdate
from models.user import User
from services.auth_deps import ensure_self_or_staff, get_current_user
from services.calendar_dates import normalize_date_fields, today_in
from services.credentials import summarize_credentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members", tags=["members"])

HIDDEN_FIELDS = {"_id", "hashed_password"}


async def get_member_or_404(db: AsyncIOMotorDatabase, member_id: str) -> dict:
    member = await db.users.find_one({"_id": member_id})
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


def serialize_member(member: dict, settings: Settings) -> dict:
    result = {k: v for k, v in member.items() if k not in HIDDEN_FIELDS}
    result["id"] = member["_id"]
    result["credentials"] = summarize_credentials(
        member,
        today_in(settings.school_timezone),
        warning_days=settings.credential_warning_days,
        time_zone=settings.school_timezone,
    )
    return result


@router.get("/{member_id}")
async def get_member(
    member_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Member profile with credential expiry status"""
    ensure_self_or_staff(current_user, member_id)
    member = await get_member_or_404(db, member_id)
    return {"member": serialize_member(member, settings)}


@router.patch("/{member_id}")
async def update_member(
    member_id: str,
    data: MemberUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Update contact details and pilot credentials"""
    ensure_self_or_staff(current_user, member_id)
    await get_member_or_404(db, member_id)

    update_data = data.model_dump(exclude_unset=True)
    if "email" in update_data and update_data["email"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="email cannot be cleared")
    try:
        normalize_date_fields(update_data, MEMBER_DATE_FIELDS, settings.school_timezone)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if update_data:
        update_data["updated_at"] = datetime.now(timezone.utc)
        await db.users.update_one({"_id": member_id}, {"$set": update_data})
        logger.info(f"Member {member_id} updated ({', '.join(sorted(update_data))}) by {current_user.email}")

    member = await db.users.find_one({"_id": member_id})
    return {"member": serialize_member(member, settings)}
