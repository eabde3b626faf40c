"""
Membership status and membership-year date rules

A membership is only current once its fee is paid; after expiry it stays in a
grace period for `grace_period_days` before it is expired.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from services.calendar_dates import parse_calendar_date


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    GRACE = "grace"
    EXPIRED = "expired"
    UNPAID = "unpaid"
    NONE = "none"


RENEWABLE = {MembershipStatus.ACTIVE, MembershipStatus.GRACE, MembershipStatus.UNPAID}


@dataclass(frozen=True)
class MembershipYear:
    start_month: int = 4
    start_day: int = 1
    end_month: int = 3
    end_day: int = 31

    @classmethod
    def from_settings(cls, settings) -> "MembershipYear":
        return cls(
            start_month=settings.membership_year_start_month,
            start_day=settings.membership_year_start_day,
            end_month=settings.membership_year_end_month,
            end_day=settings.membership_year_end_day,
        )


def _safe_date(year: int, month: int, day: int) -> date:
    """date() that clamps the day to the month's length (29 Feb in a common year -> 28 Feb)"""
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def is_fee_paid(membership: dict, invoice_status: Optional[str]) -> bool:
    if invoice_status is not None:
        return invoice_status == "paid"
    # Memberships recorded before invoicing carry a plain flag
    return membership.get("fee_paid") is True


def _grace_end(expiry: date, membership: dict) -> date:
    return expiry + timedelta(days=int(membership.get("grace_period_days") or 0))


def calculate_membership_status(
    membership: dict,
    today: date,
    invoice_status: Optional[str] = None,
    time_zone: str = "UTC",
) -> MembershipStatus:
    if not is_fee_paid(membership, invoice_status):
        return MembershipStatus.UNPAID

    expiry = parse_calendar_date(membership.get("expiry_date"), time_zone)
    if today <= expiry:
        return MembershipStatus.ACTIVE
    if today <= _grace_end(expiry, membership):
        return MembershipStatus.GRACE
    return MembershipStatus.EXPIRED


def days_until_expiry(membership: dict, today: date, status: MembershipStatus, time_zone: str = "UTC") -> Optional[int]:
    if status != MembershipStatus.ACTIVE:
        return None
    return (parse_calendar_date(membership["expiry_date"], time_zone) - today).days


def grace_period_remaining(membership: dict, today: date, status: MembershipStatus, time_zone: str = "UTC") -> Optional[int]:
    if status != MembershipStatus.GRACE:
        return None
    expiry = parse_calendar_date(membership["expiry_date"], time_zone)
    return (_grace_end(expiry, membership) - today).days


def can_renew(status: MembershipStatus) -> bool:
    return status in RENEWABLE


def calculate_membership_year(config: MembershipYear, reference: date) -> Tuple[date, date]:
    """Start and end of the membership year containing `reference`"""
    year = reference.year
    if (reference.month, reference.day) >= (config.start_month, config.start_day):
        start_year = year
    else:
        start_year = year - 1
    start = _safe_date(start_year, config.start_month, config.start_day)
    # A year starting 1 Jan ends in the same calendar year
    end_year = start_year if (config.end_month, config.end_day) >= (config.start_month, config.start_day) else start_year + 1
    end = _safe_date(end_year, config.end_month, config.end_day)
    return start, end


def default_membership_expiry(config: MembershipYear, start: date) -> date:
    return calculate_membership_year(config, start)[1]


def renewal_expiry(config: MembershipYear, current_expiry: date) -> date:
    """End of the membership year following the current expiry"""
    return _safe_date(current_expiry.year + 1, config.end_month, config.end_day)


def summarize(memberships: List[dict], invoice_statuses: dict, today: date, time_zone: str = "UTC") -> dict:
    """
    Summary for the member's membership tab.

    `memberships` newest first; `invoice_statuses` maps invoice id -> status.
    The current membership is the newest one that is active, in grace or unpaid.
    """
    current = None
    current_status = MembershipStatus.NONE
    for membership in memberships:
        status = calculate_membership_status(
            membership, today, invoice_statuses.get(membership.get("invoice_id")), time_zone
        )
        if status in RENEWABLE:
            current, current_status = membership, status
            break

    return {
        "current_membership": current,
        "status": current_status.value,
        "days_until_expiry": days_until_expiry(current, today, current_status, time_zone) if current else None,
        "grace_period_remaining": grace_period_remaining(current, today, current_status, time_zone) if current else None,
        "can_renew": current is not None and can_renew(current_status),
        "membership_history": memberships,
    }
