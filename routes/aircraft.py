from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from database.mongodb import get_database
from models.aircraft import Aircraft, AircraftUpdate
from models.user import User
from services.auth_deps import require_staff
from datetime import datetime, timezone
from typing import List
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/aircraft", tags=["aircraft"])

def format_registration(registration: str) -> str:
    """Format registration to uppercase"""
    return registration.upper().strip()

def serialize_aircraft(doc: dict) -> dict:
    data = Aircraft(**doc).model_dump()
    data["id"] = doc["_id"]
    return data

async def get_aircraft_or_404(db: AsyncIOMotorDatabase, aircraft_id: str) -> dict:
    aircraft_doc = await db.aircrafts.find_one({"_id": aircraft_id})
    if not aircraft_doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Aircraft not found"
        )
    return aircraft_doc

@router.get("", response_model=List[dict])
async def list_aircraft(
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """All aircraft in display order"""
    cursor = db.aircrafts.find({}).sort([("order", 1), ("registration", 1)])
    aircraft_list = await cursor.to_list(length=500)
    return [serialize_aircraft(doc) for doc in aircraft_list]

@router.get("/{aircraft_id}")
async def get_aircraft(
    aircraft_id: str,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get a specific aircraft, including its current tracked hours"""
    aircraft_doc = await get_aircraft_or_404(db, aircraft_id)
    return {"aircraft": serialize_aircraft(aircraft_doc)}

@router.patch("/{aircraft_id}")
async def update_aircraft(
    aircraft_id: str,
    aircraft_update: AircraftUpdate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Partial update of an aircraft"""
    await get_aircraft_or_404(db, aircraft_id)

    update_data = aircraft_update.model_dump(exclude_unset=True)
    if "registration" in update_data and update_data["registration"]:
        update_data["registration"] = format_registration(update_data["registration"])

    if update_data:
        update_data["updated_at"] = datetime.now(timezone.utc)
        await db.aircrafts.update_one(
            {"_id": aircraft_id},
            {"$set": update_data}
        )

    updated_aircraft = await db.aircrafts.find_one({"_id": aircraft_id})
    logger.info(f"Aircraft {aircraft_id} updated by {current_user.email}")
    return {"aircraft": serialize_aircraft(updated_aircraft)}
