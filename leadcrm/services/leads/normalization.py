"""Input normalization shared by single and bulk lead intake."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

from leadcrm.configs import settings
from leadcrm.services.exceptions import LeadValidationError
from leadcrm.services.leads.statuses import FOLLOW_UP_HOUR

MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")
MOBILE_FORMAT_MESSAGE = "Enter a valid 10-digit mobile number starting with 6-9"


def normalize_mobile(raw: Any) -> str:
    """Return the canonical 10-digit mobile number.

    Non-digits are stripped, then a ``91`` country prefix (12 digits) or a
    trunk ``0`` (11 digits) is dropped.

    Raises:
        LeadValidationError: the reason names the expected format.
    """
    if raw is None or not str(raw).strip():
        raise LeadValidationError("Mobile number is required")

    digits = re.sub(r"\D", "", str(raw))
    if len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    if len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]

    if len(digits) != 10:
        raise LeadValidationError("Mobile must be 10 digits")
    if not MOBILE_PATTERN.match(digits):
        raise LeadValidationError("Mobile must start with 6-9")
    return digits


def normalize_agent(raw: Any) -> Optional[str]:
    """Lowercase and trim an agent identifier; empty means unassigned."""
    if raw is None:
        return None
    cleaned = str(raw).strip().lower()
    return cleaned or None


def clean_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    cleaned = str(raw).strip()
    return cleaned or None


def parse_dob(raw: Any) -> Optional[datetime]:
    """Parse a next-action date; anything unparseable counts as absent."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime.combine(raw, time.min)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if value.tzinfo is not None:
        value = value.astimezone(_local_zone()).replace(tzinfo=None)
    return value


def _local_zone() -> Optional[ZoneInfo]:
    return ZoneInfo(settings.TIMEZONE) if settings.TIMEZONE else None


def local_now() -> datetime:
    """Naive wall-clock time in the configured timezone."""
    zone = _local_zone()
    if zone is None:
        return datetime.now()
    return datetime.now(zone).replace(tzinfo=None)


def next_follow_up_slot(now: datetime) -> datetime:
    """Tomorrow at 09:00 local time."""
    tomorrow = (now + timedelta(days=1)).date()
    return datetime.combine(tomorrow, time(hour=FOLLOW_UP_HOUR))
