from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

class VisitType(str, Enum):
    SCHEDULED = "Scheduled"
    UNSCHEDULED = "Unscheduled"
    INSPECTION = "Inspection"
    REPAIR = "Repair"
    MODIFICATION = "Modification"

class MaintenanceVisitBase(BaseModel):
    aircraft_id: str
    component_id: Optional[str] = None
    visit_date: str  # YYYY-MM-DD, legacy timestamps accepted
    visit_type: VisitType
    description: str = Field(..., min_length=1)

    total_cost: Optional[float] = Field(None, ge=0)
    hours_at_visit: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    date_out_of_maintenance: Optional[str] = None
    performed_by: Optional[str] = None

    # Due values at the time of the visit (extension included), kept for audit
    component_due_hours: Optional[float] = None
    component_due_date: Optional[str] = None

    # Overrides for the component's next cycle
    next_due_hours: Optional[float] = None
    next_due_date: Optional[str] = None

    # Scheduling
    booking_id: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    scheduled_by: Optional[str] = None

class MaintenanceVisitCreate(MaintenanceVisitBase):
    pass

class MaintenanceVisitUpdate(BaseModel):
    id: str
    visit_date: Optional[str] = None
    visit_type: Optional[VisitType] = None
    description: Optional[str] = Field(None, min_length=1)
    total_cost: Optional[float] = Field(None, ge=0)
    hours_at_visit: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    date_out_of_maintenance: Optional[str] = None
    performed_by: Optional[str] = None
    component_due_hours: Optional[float] = None
    component_due_date: Optional[str] = None
    next_due_hours: Optional[float] = None
    next_due_date: Optional[str] = None
    booking_id: Optional[str] = None
    scheduled_for: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    scheduled_by: Optional[str] = None

class VisitProjection(BaseModel):
    """Defaults offered by the log-maintenance form"""
    component_id: str
    component_due_hours: Optional[float] = None
    component_due_date: Optional[str] = None
    next_due_hours: Optional[float] = None
    next_due_date: Optional[str] = None

# Reads a client must refresh after a visit is logged or edited
VISIT_INVALIDATES: List[str] = [
    "aircraft-components",
    "aircraft",
    "maintenance-visits",
]

MAINTENANCE_VISITS_INDEXES = [
    {
        "keys": [("aircraft_id", 1), ("visit_date", -1)],
        "name": "aircraft_visits_idx"
    },
    {
        "keys": [("component_id", 1)],
        "name": "component_visits_idx"
    },
]
