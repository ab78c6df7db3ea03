"""Display helpers for the views that render dashboard and settings data.

The service layer hands out typed models; UI code calls these to turn them
into labels, and nothing inside the package depends on them.
"""
from __future__ import annotations

from datetime import datetime, timezone

from citizen_portal.utils.timestamps import to_utc, utcnow

APPLICATION_TYPE_LABELS = {
    "IDENTIFICATION_LETTER": "Identification Letter",
    "BIRTH_CERTIFICATE": "Birth Certificate",
    "HEALTH_APPOINTMENT": "Health Appointment",
    "BUSINESS_REGISTRATION": "Business Registration",
    "VEHICLE_REGISTRATION": "Vehicle Registration",
    "COMPLAINT": "Complaint",
    "EDUCATION_APPLICATION": "Education Application",
    "HOUSING_APPLICATION": "Housing Application",
}

STORAGE_UNITS = ("B", "KB", "MB", "GB")


def format_application_type(application_type: str) -> str:
    return APPLICATION_TYPE_LABELS.get(application_type, application_type)


def format_date(value: datetime | str | None) -> str:
    """Format a timestamp as e.g. ``Mar 4, 2025``; unparseable input is returned as text."""
    parsed = to_utc(value)
    if parsed is None:
        return str(value) if value is not None else ""
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_time_ago(value: datetime | str | None, now: datetime | None = None) -> str:
    """Return a compact relative age such as ``3h ago`` or ``Just now``."""
    parsed = to_utc(value)
    if parsed is None:
        return ""
    current = now if now is not None else utcnow()
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    seconds = int((current - parsed).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "Just now"


def format_storage_size(num_bytes: int | float) -> str:
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(STORAGE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.1f} {STORAGE_UNITS[unit_index]}"
