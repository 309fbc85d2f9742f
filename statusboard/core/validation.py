"""
Status Board — Input validation.

Every check runs before any store call. Messages are user-facing.
"""

from __future__ import annotations

import re
from datetime import date

from statusboard.core.resolver import DAY_NAMES

NAME_MAX = 100
EMAIL_MAX = 255
PHONE_MAX = 50
STATUS_MAX = 100

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationError(ValueError):
    """User input was rejected before reaching the store."""


class NotFoundError(ValidationError):
    """The referenced record does not exist for this tenant."""


def clean_name(value: str, label: str = "Name") -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{label} cannot be empty")
    if len(name) > NAME_MAX:
        raise ValidationError(f"{label} must be less than {NAME_MAX} characters")
    return name


def clean_email(value: str | None) -> str | None:
    """Empty clears the field."""
    email = (value or "").strip()
    if not email:
        return None
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email address")
    if len(email) > EMAIL_MAX:
        raise ValidationError(f"Email must be less than {EMAIL_MAX} characters")
    return email


def clean_phone(value: str | None) -> str | None:
    """Empty clears the field."""
    phone = (value or "").strip()
    if not phone:
        return None
    if len(phone) > PHONE_MAX:
        raise ValidationError(f"Phone number must be less than {PHONE_MAX} characters")
    return phone


def clean_status(value: str | None) -> str:
    status = (value or "").strip()
    if not status:
        raise ValidationError("Status cannot be empty")
    if len(status) > STATUS_MAX:
        raise ValidationError(f"Status must be less than {STATUS_MAX} characters")
    return status


def parse_schedule_date(value: str | date, today: date) -> str:
    """Parse a YYYY-MM-DD date for a new override. Today is allowed, the past is not."""
    if isinstance(value, date):
        parsed = value
    else:
        try:
            parsed = date.fromisoformat((value or "").strip())
        except ValueError:
            raise ValidationError("Date must be in YYYY-MM-DD format") from None
    if parsed < today:
        raise ValidationError("Scheduled date cannot be in the past")
    return parsed.isoformat()


def parse_day_of_week(value: int | str) -> int:
    """Accept 0..6 (0 = Sunday) or a weekday name / 3-letter prefix."""
    if isinstance(value, bool):
        raise ValidationError("Day must be 0-6 (0 = Sunday) or a weekday name")
    if isinstance(value, int):
        day = value
    else:
        text = (value or "").strip().lower()
        if text.isdigit():
            day = int(text)
        else:
            matches = [
                i for i, name in enumerate(DAY_NAMES)
                if len(text) >= 3 and name.lower().startswith(text)
            ]
            if len(matches) != 1:
                raise ValidationError("Day must be 0-6 (0 = Sunday) or a weekday name")
            day = matches[0]
    if not 0 <= day <= 6:
        raise ValidationError("Day must be 0-6 (0 = Sunday) or a weekday name")
    return day
