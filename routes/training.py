"""Member syllabus enrollment routes"""

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timezone
from uuid import uuid4
import logging

from config import Settings, get_settings
from database.mongodb import get_database
from models.training import EnrollmentCreate, EnrollmentStatus, EnrollmentUpdate
from models.user import User
from services.auth_deps import ensure_self_or_staff, get_current_user, require_staff
from services.calendar_dates import format_calendar_date, today_in

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/members/{member_id}/training", tags=["training"])


async def _attach_syllabus(db: AsyncIOMotorDatabase, enrollments: list) -> list:
    syllabus_ids = list({e["syllabus_id"] for e in enrollments})
    names = {}
    if syllabus_ids:
        async for doc in db.syllabi.find({"_id": {"$in": syllabus_ids}}):
            names[doc["_id"]] = doc.get("name")
    for enrollment in enrollments:
        enrollment["id"] = enrollment.pop("_id")
        sid = enrollment["syllabus_id"]
        enrollment["syllabus"] = {"id": sid, "name": names.get(sid)} if sid in names else None
    return enrollments


@router.get("/enrollments")
async def list_enrollments(
    member_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    ensure_self_or_staff(current_user, member_id)
    enrollments = await db.syllabus_enrollments.find({"user_id": member_id}).sort("enrolled_at", -1).to_list(length=200)
    return {"enrollments": await _attach_syllabus(db, enrollments)}


@router.post("/enrollments", status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    member_id: str,
    data: EnrollmentCreate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Enroll a member into a syllabus; one active enrollment per syllabus"""
    if not await db.users.find_one({"_id": member_id}):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    syllabus = await db.syllabi.find_one({"_id": data.syllabus_id, "voided_at": None})
    if not syllabus:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid syllabus selection")

    existing = await db.syllabus_enrollments.find_one({
        "user_id": member_id,
        "syllabus_id": data.syllabus_id,
        "status": EnrollmentStatus.ACTIVE.value,
        "completion_date": None,
    })
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Member is already actively enrolled in this syllabus"
        )

    now = datetime.now(timezone.utc)
    doc = data.model_dump()
    doc.update({
        "_id": uuid4().hex,
        "user_id": member_id,
        "status": EnrollmentStatus.ACTIVE.value,
        "completion_date": None,
        "enrolled_at": data.enrolled_at or now.isoformat(),
        "created_at": now,
        "updated_at": now,
    })
    await db.syllabus_enrollments.insert_one(doc)
    logger.info(f"Member {member_id} enrolled in syllabus {data.syllabus_id} by {current_user.email}")

    enrollment = (await _attach_syllabus(db, [doc]))[0]
    return {"enrollment": enrollment}


@router.patch("/enrollments/{enrollment_id}")
async def update_enrollment(
    member_id: str,
    enrollment_id: str,
    data: EnrollmentUpdate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    enrollment = await db.syllabus_enrollments.find_one({"_id": enrollment_id, "user_id": member_id})
    if not enrollment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")

    update_data = data.model_dump(mode="json", exclude_unset=True)
    if "status" in update_data:
        if update_data["status"] == EnrollmentStatus.COMPLETED.value:
            update_data["completion_date"] = enrollment.get("completion_date") \
                or format_calendar_date(today_in(settings.school_timezone))
        else:
            update_data["completion_date"] = None
    update_data["updated_at"] = datetime.now(timezone.utc)

    await db.syllabus_enrollments.update_one({"_id": enrollment_id}, {"$set": update_data})
    logger.info(f"Enrollment {enrollment_id} updated ({', '.join(sorted(update_data))})")

    updated = await db.syllabus_enrollments.find_one({"_id": enrollment_id})
    return {"enrollment": (await _attach_syllabus(db, [updated]))[0]}
