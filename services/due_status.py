"""
Component Due Status

Pure calculations behind every maintenance-item view: regulatory extensions,
remaining margin, status classification and the next-due projection used
when a visit is logged.

Rules:
- extension_limit_hours is a PERCENTAGE of the interval, not an hours value
- extended values are derived, never written back over the base due values
- the next cycle is measured from the base due value, so extensions never compound
- hours take precedence over dates when both can be evaluated
"""

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

from services.calendar_dates import add_days, parse_calendar_date

DUE_NOW_TOLERANCE = 0.01

# Defaults mirrored in config.Settings
DEFAULT_DUE_SOON_HOURS = 10.0
DEFAULT_DUE_SOON_DAYS = 30
DEFAULT_HOURS_PRECISION = 1

HOURS_INTERVALS = ("HOURS", "BOTH")
CALENDAR_INTERVALS = ("CALENDAR", "BOTH")


class DueStatus(str, Enum):
    """Display status of a component, recomputed on every read"""
    OVERDUE = "Overdue"
    WITHIN_EXTENSION = "Within Extension"
    DUE_SOON = "Due Soon"
    HEALTHY = "Healthy"


class DueBasis(str, Enum):
    HOURS = "hours"
    DATE = "date"
    NONE = "none"


@dataclass(frozen=True)
class DueMargin:
    due_in: str
    margin: float
    basis: DueBasis


@dataclass(frozen=True)
class NextDue:
    hours: Optional[float]
    date: Optional[date]


@dataclass(frozen=True)
class ComponentDueState:
    extended_due_hours: Optional[float]
    extended_due_date: Optional[date]
    effective_due_hours: Optional[float]
    effective_due_date: Optional[date]
    due_in: str
    margin: float
    status: DueStatus

    def to_dict(self) -> dict:
        return {
            "extended_due_hours": self.extended_due_hours,
            "extended_due_date": self.extended_due_date.isoformat() if self.extended_due_date else None,
            "effective_due_hours": self.effective_due_hours,
            "effective_due_date": self.effective_due_date.isoformat() if self.effective_due_date else None,
            "due_in": self.due_in,
            "margin": None if math.isinf(self.margin) else self.margin,
            "status": self.status.value,
        }


# ============================================================
# FIELD ACCESS
# ============================================================

def _field(component: Any, name: str) -> Any:
    """Read a field from a Mongo document or a pydantic model"""
    if isinstance(component, Mapping):
        return component.get(name)
    return getattr(component, name, None)


def _number(component: Any, name: str) -> Optional[float]:
    value = _field(component, name)
    if value is None or value == "":
        return None
    return float(value)


def _interval_type(component: Any) -> str:
    value = _field(component, "interval_type")
    return getattr(value, "value", value) or ""


def base_due_hours(component: Any) -> Optional[float]:
    return _number(component, "current_due_hours")


def base_due_date(component: Any, time_zone: str = "UTC") -> Optional[date]:
    return parse_calendar_date(_field(component, "current_due_date"), time_zone)


def has_extension(component: Any) -> bool:
    return _number(component, "extension_limit_hours") is not None


# ============================================================
# EXTENSION ARITHMETIC
# ============================================================

def extended_due_hours(component: Any) -> Optional[float]:
    """Base due hours plus the extension percentage of the hours interval"""
    extension = _number(component, "extension_limit_hours")
    due_hours = base_due_hours(component)
    interval_hours = _number(component, "interval_hours")
    if extension is None or due_hours is None or interval_hours is None:
        return None
    return due_hours + interval_hours * extension / 100


def extended_due_date(component: Any, time_zone: str = "UTC") -> Optional[date]:
    """Base due date plus the extension percentage of the day interval, whole days only"""
    extension = _number(component, "extension_limit_hours")
    due_date = base_due_date(component, time_zone)
    interval_days = _number(component, "interval_days")
    if extension is None or due_date is None or interval_days is None:
        return None
    return add_days(due_date, interval_days * extension / 100)


def effective_due_hours(component: Any) -> Optional[float]:
    extended = extended_due_hours(component)
    return extended if extended is not None else base_due_hours(component)


def effective_due_date(component: Any, time_zone: str = "UTC") -> Optional[date]:
    extended = extended_due_date(component, time_zone)
    return extended if extended is not None else base_due_date(component, time_zone)


# ============================================================
# DUE MARGIN
# ============================================================

def _format_hours(margin: float, precision: int) -> str:
    if abs(margin) < DUE_NOW_TOLERANCE:
        return "Due now"
    if margin < 0:
        return "Overdue"
    return f"{margin:.{precision}f}h"


def _format_days(days: int) -> str:
    if days == 0:
        return "Due now"
    if days < 0:
        return "Overdue"
    return "1 day" if days == 1 else f"{days} days"


def due_margin(
    component: Any,
    current_hours: Optional[float],
    today: date,
    time_zone: str = "UTC",
    precision: int = DEFAULT_HOURS_PRECISION,
) -> DueMargin:
    """
    Remaining margin until the effective due point.

    Unknown aircraft hours give "N/A" with an infinite margin so the component
    sorts last, whatever its interval type. Otherwise hours-based when the
    component has due hours; date-based only when it has no due hours at all.
    """
    if current_hours is None:
        return DueMargin("N/A", math.inf, DueBasis.NONE)

    due_hours = effective_due_hours(component)
    if due_hours is not None:
        margin = due_hours - float(current_hours)
        return DueMargin(_format_hours(margin, precision), margin, DueBasis.HOURS)

    due_date = effective_due_date(component, time_zone)
    if due_date is not None:
        days = (due_date - today).days
        return DueMargin(_format_days(days), float(days), DueBasis.DATE)

    return DueMargin("N/A", math.inf, DueBasis.NONE)


# ============================================================
# STATUS CLASSIFIER
# ============================================================

def _classify_hours(component: Any, current_hours: float, due_soon_hours: float) -> DueStatus:
    base = base_due_hours(component)
    extended = extended_due_hours(component)
    effective = extended if extended is not None else base

    if effective - current_hours <= 0:
        return DueStatus.OVERDUE
    if has_extension(component) and extended is not None and base is not None:
        if base < current_hours < extended:
            return DueStatus.WITHIN_EXTENSION
    if base is not None and base - current_hours <= due_soon_hours:
        return DueStatus.DUE_SOON
    return DueStatus.HEALTHY


def _classify_date(component: Any, today: date, due_soon_days: int, time_zone: str) -> DueStatus:
    base = base_due_date(component, time_zone)
    extended = extended_due_date(component, time_zone)
    effective = extended if extended is not None else base

    if effective <= today:
        return DueStatus.OVERDUE
    if has_extension(component) and extended is not None and base is not None:
        if base < today < extended:
            return DueStatus.WITHIN_EXTENSION
    if base is not None and (base - today).days <= due_soon_days:
        return DueStatus.DUE_SOON
    return DueStatus.HEALTHY


def classify(
    component: Any,
    current_hours: Optional[float],
    today: date,
    due_soon_hours: float = DEFAULT_DUE_SOON_HOURS,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
    time_zone: str = "UTC",
) -> DueStatus:
    """
    Overdue > Within Extension > Due Soon > Healthy, first match wins.

    "Due Soon" is measured against the base due value so an extension never
    hides an approaching deadline.
    """
    if effective_due_hours(component) is not None and current_hours is not None:
        return _classify_hours(component, float(current_hours), due_soon_hours)
    if effective_due_date(component, time_zone) is not None:
        return _classify_date(component, today, due_soon_days, time_zone)
    return DueStatus.HEALTHY


# ============================================================
# NEXT-DUE PROJECTOR
# ============================================================

def project_next_due(
    component: Any,
    visit_date: Optional[date],
    hours_at_visit: Optional[float] = None,
) -> NextDue:
    """
    Default next due values after a visit.

    Hours: base current_due_hours + interval_hours. Only a component that has
    never had due hours falls back to the hours at the visit.
    Date: visit date + interval_days.
    """
    interval_type = _interval_type(component)
    interval_hours = _number(component, "interval_hours")
    interval_days = _number(component, "interval_days")

    next_hours = None
    if interval_type in HOURS_INTERVALS and interval_hours is not None:
        base = base_due_hours(component)
        if base is not None:
            next_hours = base + interval_hours
        elif hours_at_visit is not None:
            next_hours = float(hours_at_visit) + interval_hours

    next_date = None
    if interval_type in CALENDAR_INTERVALS and interval_days is not None and visit_date is not None:
        next_date = add_days(visit_date, interval_days)

    return NextDue(next_hours, next_date)


def due_snapshot(component: Any, time_zone: str = "UTC") -> NextDue:
    """Effective due values at the time of a visit, kept on the visit for audit"""
    return NextDue(effective_due_hours(component), effective_due_date(component, time_zone))


# ============================================================
# EVALUATION
# ============================================================

def evaluate(
    component: Any,
    current_hours: Optional[float],
    today: date,
    due_soon_hours: float = DEFAULT_DUE_SOON_HOURS,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
    precision: int = DEFAULT_HOURS_PRECISION,
    time_zone: str = "UTC",
) -> ComponentDueState:
    margin = due_margin(component, current_hours, today, time_zone, precision)
    return ComponentDueState(
        extended_due_hours=extended_due_hours(component),
        extended_due_date=extended_due_date(component, time_zone),
        effective_due_hours=effective_due_hours(component),
        effective_due_date=effective_due_date(component, time_zone),
        due_in=margin.due_in,
        margin=margin.margin,
        status=classify(component, current_hours, today, due_soon_hours, due_soon_days, time_zone),
    )


def sort_by_margin(items: Iterable[Any], key=lambda item: item.margin) -> List[Any]:
    """Closest to due first, unknown margins last"""
    return sorted(items, key=key)
