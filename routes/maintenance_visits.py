"""
Maintenance Visit Routes

Logging a visit against a component advances that component's schedule
server-side: next due values come from the base (unextended) due value plus
the interval, unless the form sent explicit overrides, and any extension is
cleared.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4
import logging

from config import Settings, get_settings
from database.mongodb import get_database
from models.maintenance import (
    MaintenanceVisitCreate,
    MaintenanceVisitUpdate,
    VisitProjection,
    VISIT_INVALIDATES,
)
from models.user import User
from routes.components import get_component_or_404
from services.auth_deps import require_staff
from services.calendar_dates import format_calendar_date, normalize_date_fields, parse_calendar_date
from services import due_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/maintenance-visits", tags=["maintenance-visits"])

VISIT_DATE_FIELDS = ("visit_date", "date_out_of_maintenance", "component_due_date", "next_due_date")
SCHEDULE_FIELDS = ("visit_date", "hours_at_visit", "next_due_hours", "next_due_date")


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def normalize_dates(data: dict, settings: Settings) -> dict:
    try:
        return normalize_date_fields(data, VISIT_DATE_FIELDS, settings.school_timezone)
    except ValueError as e:
        raise _bad_request(str(e))


async def attach_components(db: AsyncIOMotorDatabase, visits: list) -> list:
    """Replace _id with id and add {id, name} of the linked component"""
    component_ids = list({v["component_id"] for v in visits if v.get("component_id")})
    names = {}
    if component_ids:
        cursor = db.aircraft_components.find({"_id": {"$in": component_ids}})
        async for comp in cursor:
            names[comp["_id"]] = comp.get("name")

    results = []
    for visit in visits:
        item = {k: v for k, v in visit.items() if k != "_id"}
        item["id"] = visit["_id"]
        component_id = visit.get("component_id")
        item["component"] = (
            {"id": component_id, "name": names[component_id]}
            if component_id in names else None
        )
        results.append(item)
    return results


def resolve_next_due(component: dict, visit: dict, overrides: dict, settings: Settings) -> due_status.NextDue:
    """Override values win; otherwise the anti-compounding projection"""
    visit_date = parse_calendar_date(visit.get("visit_date"), settings.school_timezone)
    projected = due_status.project_next_due(component, visit_date, visit.get("hours_at_visit"))

    if overrides.get("next_due_hours") is not None:
        next_hours = float(overrides["next_due_hours"])
    elif projected.hours is not None:
        next_hours = projected.hours
    else:
        next_hours = component.get("current_due_hours")

    if overrides.get("next_due_date"):
        next_date = overrides["next_due_date"]
    elif projected.date is not None:
        next_date = format_calendar_date(projected.date)
    else:
        next_date = component.get("current_due_date")

    return due_status.NextDue(next_hours, next_date)


async def advance_component(db: AsyncIOMotorDatabase, component: dict, visit: dict, next_due: due_status.NextDue):
    update = {
        "last_completed_date": visit.get("visit_date"),
        "current_due_hours": next_due.hours,
        "current_due_date": next_due.date,
        "extension_limit_hours": None,  # extension ends with the maintenance
        "updated_at": datetime.now(timezone.utc),
    }
    if visit.get("hours_at_visit") is not None:
        update["last_completed_hours"] = visit["hours_at_visit"]

    await db.aircraft_components.update_one({"_id": component["_id"]}, {"$set": update})
    logger.info(
        f"Component {component['_id']} advanced: due hours {component.get('current_due_hours')} -> {next_due.hours}, "
        f"due date {component.get('current_due_date')} -> {next_due.date}"
    )


async def is_latest_visit(db: AsyncIOMotorDatabase, visit: dict) -> bool:
    """Only the most recent visit on a component owns its current schedule"""
    cursor = db.maintenance_visits.find({"component_id": visit["component_id"]}).sort(
        [("visit_date", -1), ("created_at", -1)]
    )
    latest = await cursor.to_list(length=1)
    return bool(latest) and latest[0]["_id"] == visit["_id"]


@router.get("")
async def get_maintenance_visits(
    aircraft_id: Optional[str] = Query(None),
    component_id: Optional[str] = Query(None),
    maintenance_visit_id: Optional[str] = Query(None),
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Visit history (newest first), or a single visit"""
    if maintenance_visit_id:
        visit = await db.maintenance_visits.find_one({"_id": maintenance_visit_id})
        if not visit:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance visit not found")
        return (await attach_components(db, [visit]))[0]

    query = {}
    if aircraft_id:
        query["aircraft_id"] = aircraft_id
    if component_id:
        query["component_id"] = component_id

    cursor = db.maintenance_visits.find(query).sort("visit_date", -1)
    visits = await cursor.to_list(length=1000)
    return await attach_components(db, visits)


@router.get("/projection", response_model=VisitProjection)
async def get_visit_projection(
    component_id: str,
    visit_date: Optional[str] = None,
    hours_at_visit: Optional[float] = None,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Default due snapshot and next due values for the log-maintenance form"""
    component = await get_component_or_404(db, component_id)
    try:
        parsed_visit_date = parse_calendar_date(visit_date, settings.school_timezone)
    except ValueError as e:
        raise _bad_request(str(e))

    snapshot = due_status.due_snapshot(component, settings.school_timezone)
    projected = due_status.project_next_due(component, parsed_visit_date, hours_at_visit)

    return VisitProjection(
        component_id=component_id,
        component_due_hours=snapshot.hours,
        component_due_date=format_calendar_date(snapshot.date),
        next_due_hours=projected.hours,
        next_due_date=format_calendar_date(projected.date),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_maintenance_visit(
    data: MaintenanceVisitCreate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Log a maintenance visit, advancing the linked component's schedule"""
    aircraft = await db.aircrafts.find_one({"_id": data.aircraft_id})
    if not aircraft:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Aircraft not found")

    doc = normalize_dates(data.model_dump(mode="json"), settings)
    if not doc.get("visit_date"):
        raise _bad_request("visit_date is required")
    if not doc.get("performed_by"):
        doc["performed_by"] = current_user.id

    component = None
    if data.component_id:
        component = await get_component_or_404(db, data.component_id)
        if component["aircraft_id"] != data.aircraft_id:
            raise _bad_request("Component does not belong to this aircraft")

        snapshot = due_status.due_snapshot(component, settings.school_timezone)
        if doc.get("component_due_hours") is None:
            doc["component_due_hours"] = snapshot.hours
        if not doc.get("component_due_date"):
            doc["component_due_date"] = format_calendar_date(snapshot.date)

        next_due = resolve_next_due(component, doc, doc, settings)
        doc["next_due_hours"] = next_due.hours
        doc["next_due_date"] = next_due.date
        # Base values the projection was measured from, reused on edits
        doc["component_base_due_hours"] = component.get("current_due_hours")
        doc["component_base_due_date"] = component.get("current_due_date")

    now = datetime.now(timezone.utc)
    doc.update({"_id": uuid4().hex, "created_at": now, "updated_at": now})
    await db.maintenance_visits.insert_one(doc)
    logger.info(f"Maintenance visit {doc['_id']} logged for aircraft {data.aircraft_id} by {current_user.email}")

    if component is not None:
        await advance_component(db, component, doc, due_status.NextDue(doc["next_due_hours"], doc["next_due_date"]))

    result = (await attach_components(db, [doc]))[0]
    result["invalidates"] = VISIT_INVALIDATES
    return result


@router.patch("")
async def update_maintenance_visit(
    data: MaintenanceVisitUpdate,
    current_user: User = Depends(require_staff),
    db: AsyncIOMotorDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """
    Edit a visit. The component schedule is only recomputed when the visit
    date, hours or next-due overrides change, so editing notes or costs never
    moves a due date.
    """
    existing = await db.maintenance_visits.find_one({"_id": data.id})
    if not existing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance visit not found")

    update_fields = data.model_dump(mode="json", exclude_unset=True)
    update_fields.pop("id", None)
    normalize_dates(update_fields, settings)
    if "visit_date" in update_fields and not update_fields["visit_date"]:
        raise _bad_request("visit_date cannot be cleared")

    changed = {
        field for field in SCHEDULE_FIELDS
        if field in update_fields and update_fields[field] != existing.get(field)
    }

    visit = {**existing, **update_fields}
    component = None
    if visit.get("component_id") and changed:
        component = await db.aircraft_components.find_one({"_id": visit["component_id"]})

    if component is not None:
        # Re-project from the base the visit was originally measured from
        base_component = {
            **component,
            "current_due_hours": existing.get("component_base_due_hours", component.get("current_due_hours")),
            "current_due_date": existing.get("component_base_due_date", component.get("current_due_date")),
        }
        next_due = resolve_next_due(base_component, visit, update_fields, settings)
        if "hours_at_visit" not in changed and "next_due_hours" not in changed:
            next_due = due_status.NextDue(existing.get("next_due_hours"), next_due.date)
        if "visit_date" not in changed and "next_due_date" not in changed:
            next_due = due_status.NextDue(next_due.hours, existing.get("next_due_date"))
        update_fields["next_due_hours"] = next_due.hours
        update_fields["next_due_date"] = next_due.date

    update_fields["updated_at"] = datetime.now(timezone.utc)
    await db.maintenance_visits.update_one({"_id": data.id}, {"$set": update_fields})

    updated = await db.maintenance_visits.find_one({"_id": data.id})
    if component is not None:
        if await is_latest_visit(db, updated):
            await advance_component(db, component, updated, due_status.NextDue(updated["next_due_hours"], updated["next_due_date"]))
        else:
            logger.info(f"Maintenance visit {data.id} is not the latest for component {component['_id']}, schedule unchanged")

    logger.info(f"Maintenance visit {data.id} updated by {current_user.email}")
    result = (await attach_components(db, [updated]))[0]
    result["invalidates"] = VISIT_INVALIDATES
    return result
