"""Closed vocabulary of lead statuses and the rule sets built on it."""

from enum import Enum
from typing import Optional

from leadcrm.services.exceptions import LeadValidationError

# a third consecutive Busy / NR/SF / RNR outcome transfers the lead
ESCALATION_THRESHOLD = 3
STREAK_WINDOW = 3

FOLLOW_UP_HOUR = 9


class LeadStatus(str, Enum):
    VISIT_SCHEDULED = "Visit Scheduled"
    NR_SF = "NR/SF"
    RNR = "RNR"
    DETAILS_SHARED = "Details_shared"
    SITE_VISITED = "Site Visited"
    BOOKED = "Booked"
    INVALID = "Invalid"
    NOT_INTERESTED = "Not Interested"
    LOCATION_ISSUE = "Location Issue"
    CP = "CP"
    BUDGET_ISSUE = "Budget Issue"
    VISIT_POSTPONED = "Visit Postponed"
    BUSY = "Busy"
    CLOSED = "Closed"


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


TRACKED_STATUSES = frozenset(LeadStatus)

AUTO_24H_STATUSES = frozenset(
    {
        LeadStatus.NR_SF,
        LeadStatus.RNR,
        LeadStatus.DETAILS_SHARED,
        LeadStatus.SITE_VISITED,
        LeadStatus.BUSY,
    }
)

HARD_LOCK_STATUSES = frozenset({LeadStatus.NR_SF, LeadStatus.RNR, LeadStatus.BUSY})

ESCALATION_STATUSES = frozenset({LeadStatus.BUSY, LeadStatus.NR_SF, LeadStatus.RNR})

_BY_VALUE = {status.value: status for status in LeadStatus}


def parse_status(raw: object) -> Optional[LeadStatus]:
    """Trim a raw status; empty means no status, unknown values are rejected."""
    if raw is None:
        return None
    if isinstance(raw, LeadStatus):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    status = _BY_VALUE.get(text)
    if status is None:
        raise LeadValidationError(f"Unknown status '{text}'")
    return status


def is_tracked(status: Optional[LeadStatus]) -> bool:
    return status is not None and status in TRACKED_STATUSES


def needs_next_day_default(status: Optional[LeadStatus]) -> bool:
    return status is not None and status in AUTO_24H_STATUSES


def is_date_locked(status: Optional[LeadStatus]) -> bool:
    return status is not None and status in HARD_LOCK_STATUSES


def counts_toward_escalation(status: Optional[LeadStatus]) -> bool:
    return status is not None and status in ESCALATION_STATUSES


def status_of(value: Optional[str]) -> Optional[LeadStatus]:
    """Look up a stored status without rejecting legacy values."""
    if value is None:
        return None
    return _BY_VALUE.get(str(value).strip())
