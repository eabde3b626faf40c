from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from enum import Enum

class UserRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    MEMBER = "member"
    STUDENT = "student"

# Roles allowed to manage aircraft, maintenance and memberships
STAFF_ROLES = {UserRole.OWNER, UserRole.ADMIN, UserRole.INSTRUCTOR}

class User(BaseModel):
    id: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: UserRole = UserRole.MEMBER
    created_at: Optional[datetime] = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
