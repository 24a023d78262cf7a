"""
Persisted record of a meeting reminder that has been sent.
"""
from pydantic import BaseModel

REMINDER_TIERS = ("1day", "1hour", "15min", "live")


def reminder_key(meeting_id: str, user_id: str, tier: str) -> str:
    return f"{meeting_id}:{user_id}:{tier}"


class SentReminder(BaseModel):
    id: str
    meeting_id: str
    user_id: str
    tier: str
    sent_at: str
