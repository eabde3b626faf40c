"""
Aircraft Component Routes
Maintenance items tracked per aircraft, with their computed due status.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4
import logging

from config import Settings, get_settings
from database.mongodb import get_database
from models.components import (
    ComponentCreate,
    ComponentDelete,
    ComponentUpdate,
    ExtensionRequest,
    check_interval_fields,
)
from models.user import User
from services.auth_deps import require_staff
from services.calendar_dates import normalize_date_fields, today_in
from services import due_status

router = APIRouter(prefix="/api/aircraft-components", tags=["aircraft-components"])
logger = logging.getLogger(__name__)

COMPONENT_DATE_FIELDS = ("current_due_date", "last_completed_date")
REQUIRED_FIELDS = ("name", "interval_type", "component_type", "status")
ACTIVE = {"voided_at": None}


def aircraft_hours(aircraft: Optional[dict]) -> Optional[float]:
    if not aircraft or aircraft.get("total_hours") is None:
        return None
    return float(aircraft["total_hours"])


def serialize_component(doc: dict, current_hours: Optional[float], settings: Settings) -> dict:
    """Component document plus its computed due block"""
    result = {k: v for k, v in doc.items() if k != "_id"}
    result["id"] = doc["_id"]
    state = due_status.evaluate(
        doc,
        current_hours,
        today_in(settings.school_timezone),
        due_soon_hours=settings.due_soon_hours,
        due_soon_days=settings.due_soon_days,
        precision=settings.due_hours_precision,
        time_zone=settings.school_timezone,
    )
    result["due"] = state.to_dict()
    return result


def normalize_dates(data: dict, settings: Settings) -> dict:
    try:
        return normalize_date_fields(data, COMPONENT_DATE_FIELDS, settings.school_timezone)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


async def get_component_or_404(db: AsyncIOMotorDatabase, component_id: str) -> dict:
    component = await db.aircraft_components.find_one({"_id": component_id, **ACTIVE})
    if not component:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Component not found")
    return component


async def _respond(db: AsyncIOMotorDatabase, component_id: str, settings: Settings) -> dict:
    component = await db.aircraft_components.find_one({"_id": component_id})
    aircraft = await db.aircrafts.find_one({"_id": component["aircraft_id"]})
    return serialize_component(component, aircraft_hours(aircraft), settings)


@router.get("")
async def get_components(
    aircraft_id: Optional[str] = Query(None),
    id: Optional[str] = Query(None),
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """One component by id, or every active component of an aircraft sorted by due margin"""
    if id:
        component = await get_component_or_404(db, id)
        aircraft = await db.aircrafts.find_one({"_id": component["aircraft_id"]})
        return serialize_component(component, aircraft_hours(aircraft), settings)

    if not aircraft_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="aircraft_id is required")

    aircraft = await db.aircrafts.find_one({"_id": aircraft_id})
    current_hours = aircraft_hours(aircraft)

    cursor = db.aircraft_components.find({"aircraft_id": aircraft_id, **ACTIVE})
    components = await cursor.to_list(length=1000)
    results = [serialize_component(doc, current_hours, settings) for doc in components]

    def sort_key(item):
        margin = item["due"]["margin"]
        return float("inf") if margin is None else margin

    return due_status.sort_by_margin(results, key=sort_key)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_component(
    data: ComponentCreate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Create a maintenance item on an aircraft"""
    aircraft = await db.aircrafts.find_one({"_id": data.aircraft_id})
    if not aircraft:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Aircraft not found")

    now = datetime.now(timezone.utc)
    doc = normalize_dates(data.model_dump(mode="json"), settings)
    doc.update({
        "_id": uuid4().hex,
        "created_at": now,
        "updated_at": now,
        "voided_at": None,
    })

    await db.aircraft_components.insert_one(doc)
    logger.info(f"Component {doc['_id']} ({data.name}) created on aircraft {data.aircraft_id} by {current_user.email}")

    return serialize_component(doc, aircraft_hours(aircraft), settings)


@router.patch("")
async def update_component(
    data: ComponentUpdate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Partial update; extend/revert is a PATCH of extension_limit_hours alone"""
    existing = await get_component_or_404(db, data.id)

    update_data = data.model_dump(mode="json", exclude_unset=True)
    update_data.pop("id", None)
    for field in REQUIRED_FIELDS:
        if field in update_data and update_data[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be cleared")
    for field in COMPONENT_DATE_FIELDS:
        if update_data.get(field) == "":
            update_data[field] = None
    normalize_dates(update_data, settings)

    merged = {**existing, **update_data}
    try:
        check_interval_fields(merged.get("interval_type"), merged.get("interval_hours"), merged.get("interval_days"))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    update_data["updated_at"] = datetime.now(timezone.utc)
    await db.aircraft_components.update_one({"_id": data.id}, {"$set": update_data})

    logger.info(f"Component {data.id} updated ({', '.join(sorted(update_data))}) by {current_user.email}")
    return await _respond(db, data.id, settings)


@router.post("/{component_id}/extension")
async def extend_component(
    component_id: str,
    data: ExtensionRequest,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Apply a regulatory extension; base due values are left untouched"""
    await get_component_or_404(db, component_id)
    await db.aircraft_components.update_one(
        {"_id": component_id},
        {"$set": {"extension_limit_hours": data.extension_limit_hours, "updated_at": datetime.now(timezone.utc)}}
    )
    logger.info(f"Component {component_id} extended by {data.extension_limit_hours}% by {current_user.email}")
    return await _respond(db, component_id, settings)


@router.delete("/{component_id}/extension")
async def revert_extension(
    component_id: str,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Remove the extension"""
    await get_component_or_404(db, component_id)
    await db.aircraft_components.update_one(
        {"_id": component_id},
        {"$set": {"extension_limit_hours": None, "updated_at": datetime.now(timezone.utc)}}
    )
    logger.info(f"Component {component_id} extension reverted by {current_user.email}")
    return await _respond(db, component_id, settings)


@router.delete("")
async def delete_component(
    data: ComponentDelete,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Void a component; it disappears from every read"""
    await get_component_or_404(db, data.id)
    await db.aircraft_components.update_one(
        {"_id": data.id},
        {"$set": {"voided_at": datetime.now(timezone.utc)}}
    )
    logger.info(f"Component {data.id} deleted by {current_user.email}")
    return {"success": True}
