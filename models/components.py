"""
Aircraft Component Model

Maintenance-tracked items on an aircraft (inspections, batteries, overhauls...)
with an hours and/or calendar interval.

Collection: aircraft_components
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from enum import Enum


class ComponentType(str, Enum):
    BATTERY = "battery"
    INSPECTION = "inspection"
    SERVICE = "service"
    ENGINE = "engine"
    FUSELAGE = "fuselage"
    AVIONICS = "avionics"
    ELT = "elt"
    PROPELLER = "propeller"
    LANDING_GEAR = "landing_gear"
    OTHER = "other"


class IntervalType(str, Enum):
    HOURS = "HOURS"
    CALENDAR = "CALENDAR"
    BOTH = "BOTH"


class ComponentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    REMOVED = "removed"


class ComponentPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def check_interval_fields(interval_type, interval_hours, interval_days):
    """Raise ValueError when the interval definition is incomplete"""
    interval_type = getattr(interval_type, "value", interval_type)
    if interval_type in ("HOURS", "BOTH") and interval_hours is None:
        raise ValueError(f"interval_hours is required for {interval_type} intervals")
    if interval_type in ("CALENDAR", "BOTH") and interval_days is None:
        raise ValueError(f"interval_days is required for {interval_type} intervals")


class ComponentBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    component_type: ComponentType = ComponentType.OTHER

    interval_type: IntervalType
    interval_hours: Optional[float] = Field(None, gt=0)
    interval_days: Optional[int] = Field(None, gt=0)

    # Due state - always the unextended baseline
    current_due_hours: Optional[float] = None
    current_due_date: Optional[str] = None  # Accept string, normalised in route
    last_completed_hours: Optional[float] = None
    last_completed_date: Optional[str] = None

    # Percentage of the interval allowed past the due point (null = no extension)
    extension_limit_hours: Optional[float] = Field(None, ge=0, le=100)

    status: ComponentStatus = ComponentStatus.ACTIVE
    priority: Optional[ComponentPriority] = None
    notes: Optional[str] = None


class ComponentCreate(ComponentBase):
    aircraft_id: str

    @model_validator(mode="after")
    def validate_interval(self):
        check_interval_fields(self.interval_type, self.interval_hours, self.interval_days)
        return self


class ComponentUpdate(BaseModel):
    """PATCH body - only the fields present are applied"""
    id: str
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    component_type: Optional[ComponentType] = None
    interval_type: Optional[IntervalType] = None
    interval_hours: Optional[float] = Field(None, gt=0)
    interval_days: Optional[int] = Field(None, gt=0)
    current_due_hours: Optional[float] = None
    current_due_date: Optional[str] = None
    last_completed_hours: Optional[float] = None
    last_completed_date: Optional[str] = None
    extension_limit_hours: Optional[float] = Field(None, ge=0, le=100)
    status: Optional[ComponentStatus] = None
    priority: Optional[ComponentPriority] = None
    notes: Optional[str] = None


class ExtensionRequest(BaseModel):
    extension_limit_hours: float = Field(..., ge=0, le=100)


class ComponentDelete(BaseModel):
    id: str


# ============================================================
# INDEX DEFINITION
# ============================================================

AIRCRAFT_COMPONENTS_INDEXES = [
    {
        "keys": [("aircraft_id", 1), ("voided_at", 1)],
        "name": "aircraft_active_components_idx"
    },
]
