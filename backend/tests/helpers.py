"""Test helpers shared across test packages."""

from datetime import datetime, timedelta, timezone

# Monday 2024-03-04 09:46 UTC
NOW = datetime(2024, 3, 4, 9, 46, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock so timestamps and countdowns are deterministic."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


def at(hour: int, minute: int = 0, day: int = 4) -> datetime:
    return datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def meeting_payload(title="Standup", start=None, end=None, **extra):
    start = start or at(10)
    end = end or (start + timedelta(hours=1))
    return {"title": title, "start_time": iso(start), "end_time": iso(end), **extra}
