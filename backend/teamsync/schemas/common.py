"""
Validators shared by request schemas.
"""
from datetime import timezone
from typing import Optional

from teamsync.models.base import parse_instant


def require_text(value: str, name: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{name} is required")
    return value.strip()


def check_timestamp(value: Optional[str]) -> Optional[str]:
    """Accept any ISO-8601 instant and store it as UTC so stored values sort as strings."""
    if value is None:
        return None
    try:
        instant = parse_instant(value)
    except ValueError:
        raise ValueError(f"Invalid ISO-8601 timestamp: {value}")
    return instant.astimezone(timezone.utc).isoformat()


def check_window(start: Optional[str], end: Optional[str], start_name: str, end_name: str) -> None:
    if start and end and parse_instant(end) < parse_instant(start):
        raise ValueError(f"{end_name} must not be before {start_name}")
