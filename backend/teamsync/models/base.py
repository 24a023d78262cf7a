"""
Shared base for stored entities.
"""
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return utc_clock().isoformat()


def parse_instant(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class Entity(BaseModel):
    id: str
    created_at: str
    updated_at: Optional[str] = None

    class Config:
        extra = "ignore"
        populate_by_name = True
