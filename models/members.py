"""Member profile and pilot credential models"""

from pydantic import BaseModel, EmailStr
from typing import Optional

MEMBER_DATE_FIELDS = (
    "date_of_birth",
    "pilot_license_expiry",
    "medical_certificate_expiry",
    "class_1_medical_due",
    "class_2_medical_due",
    "BFR_due",
)


class MemberUpdate(BaseModel):
    """PATCH body; an empty string clears a date"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    date_of_birth: Optional[str] = None
    next_of_kin_name: Optional[str] = None
    next_of_kin_phone: Optional[str] = None
    company_name: Optional[str] = None
    notes: Optional[str] = None

    # Pilot credentials
    pilot_license_number: Optional[str] = None
    pilot_license_type: Optional[str] = None
    pilot_license_expiry: Optional[str] = None
    medical_certificate_expiry: Optional[str] = None
    class_1_medical_due: Optional[str] = None
    class_2_medical_due: Optional[str] = None
    BFR_due: Optional[str] = None
