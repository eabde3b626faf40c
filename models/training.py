"""Syllabus enrollment models"""

from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    WITHDRAWN = "withdrawn"


class EnrollmentCreate(BaseModel):
    syllabus_id: str
    notes: Optional[str] = Field(None, max_length=2000)
    primary_instructor_id: Optional[str] = None
    aircraft_type: Optional[str] = None
    enrolled_at: Optional[str] = None

    class Config:
        extra = "forbid"


class EnrollmentUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=2000)
    primary_instructor_id: Optional[str] = None
    aircraft_type: Optional[str] = None
    enrolled_at: Optional[str] = None
    status: Optional[EnrollmentStatus] = None

    class Config:
        extra = "forbid"


ENROLLMENTS_INDEXES = [
    {
        "keys": [("user_id", 1), ("syllabus_id", 1), ("status", 1)],
        "name": "user_syllabus_status_idx"
    },
]
