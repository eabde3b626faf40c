from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class AircraftBase(BaseModel):
    registration: str  # Always upper case, e.g. ZK-ABC
    aircraft_type: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None

    # Hours
    total_hours: Optional[float] = None  # Current tracked hours (tacho/hobbs)

    status: str = "active"
    order: int = 0  # Display order in lists

class AircraftUpdate(BaseModel):
    registration: Optional[str] = None
    aircraft_type: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    total_hours: Optional[float] = Field(None, ge=0)
    status: Optional[str] = None
    order: Optional[int] = None

class Aircraft(AircraftBase):
    id: str = Field(alias="_id")
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
