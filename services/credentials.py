"""Pilot credential expiry tracking (licence, medicals, biennial flight review)"""

from datetime import date, timedelta
from enum import Enum
from typing import List, Optional

from services.calendar_dates import format_calendar_date, parse_calendar_date


class CredentialStatus(str, Enum):
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


# field name -> label shown next to the badge
TRACKED_CREDENTIALS = {
    "pilot_license_expiry": "Pilot licence",
    "medical_certificate_expiry": "Medical certificate",
    "class_1_medical_due": "Class 1 medical",
    "class_2_medical_due": "Class 2 medical",
    "BFR_due": "Biennial flight review",
}


def credential_status(expiry: Optional[date], today: date, warning_days: int = 30) -> CredentialStatus:
    if expiry is None:
        return CredentialStatus.UNKNOWN
    if expiry < today:
        return CredentialStatus.EXPIRED
    if expiry < today + timedelta(days=warning_days):
        return CredentialStatus.EXPIRING
    return CredentialStatus.VALID


def summarize_credentials(member: dict, today: date, warning_days: int = 30, time_zone: str = "UTC") -> List[dict]:
    summary = []
    for field, label in TRACKED_CREDENTIALS.items():
        expiry = parse_calendar_date(member.get(field), time_zone)
        summary.append({
            "field": field,
            "label": label,
            "expiry_date": format_calendar_date(expiry),
            "status": credential_status(expiry, today, warning_days).value,
            "days_remaining": (expiry - today).days if expiry else None,
        })
    return summary
