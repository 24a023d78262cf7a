"""
Derived views over raw collection snapshots.

Everything here is a pure function of its inputs plus an explicit reference
time, so the same snapshot always yields the same view. Items may be entity
models or plain documents.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from teamsync.models.base import parse_instant

FIFTEEN_MINUTES = timedelta(minutes=15)
ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)

SCHEDULER_TOLERANCE = timedelta(minutes=2)
NOTIFICATION_TOLERANCE = timedelta(minutes=1)

# Statuses that still count as "coming up"
UPCOMING_STATUSES = ("Scheduled",)

Instant = Union[str, datetime]


def _get(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def to_datetime(value: Instant) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=ZoneInfo("UTC"))
    return parse_instant(value)


def resolve_zone(name: Optional[str] = None) -> Optional[tzinfo]:
    """Zone for day keys; None means the server's local time."""
    return ZoneInfo(name) if name else None


def day_key(value: Instant, tz: Optional[tzinfo] = None) -> str:
    """YYYY-MM-DD of an instant in `tz` (server local time when None)."""
    return to_datetime(value).astimezone(tz).date().isoformat()


# Countdown


@dataclass(frozen=True)
class TimeLeft:
    days: int
    hours: int
    minutes: int
    seconds: int
    total: timedelta

    @classmethod
    def zero(cls) -> "TimeLeft":
        return cls(0, 0, 0, 0, timedelta(0))


@dataclass(frozen=True)
class Countdown:
    time_left: TimeLeft
    status: str  # 'upcoming', 'starting_soon', 'live', 'completed'
    display_text: str
    is_urgent: bool
    is_critical: bool


def calculate_time_left(target: Instant, now: datetime) -> TimeLeft:
    """Time remaining until `target`, broken into whole units. Zero once passed."""
    diff = to_datetime(target) - now
    if diff <= timedelta(0):
        return TimeLeft.zero()
    seconds_total = int(diff.total_seconds())
    days, rest = divmod(seconds_total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return TimeLeft(days, hours, minutes, seconds, diff)


def countdown(item: Any, now: datetime) -> Countdown:
    """
    Countdown state of a timed item relative to `now`.

    An item is live while `now` lies within [start, end], completed once
    `now` has passed its start and it is not live, and otherwise upcoming.
    Upcoming items within 15 minutes are reported as starting_soon.
    """
    start = to_datetime(_get(item, "start_time"))
    end_value = _get(item, "end_time")
    end = to_datetime(end_value) if end_value else None

    if end is not None and start <= now <= end:
        minutes_left = int((end - now).total_seconds() // 60)
        hours_left = minutes_left // 60
        text = (
            f"Live - {hours_left}h {minutes_left % 60}m left"
            if hours_left > 0
            else f"Live - {minutes_left}m left"
        )
        return Countdown(calculate_time_left(end, now), "live", text, True, True)

    if now >= start:
        return Countdown(TimeLeft.zero(), "completed", "Completed", False, False)

    left = calculate_time_left(start, now)
    total = left.total
    status = "upcoming"
    if total <= FIFTEEN_MINUTES:
        status = "starting_soon"
        text = "Starting now!" if left.minutes <= 0 else f"{left.minutes}m left"
    elif total <= ONE_HOUR:
        text = f"{left.minutes}m left"
    elif total <= ONE_DAY:
        text = f"{left.hours}h {left.minutes}m left"
    elif left.days == 1:
        text = f"1 day {left.hours}h left"
    else:
        text = f"{left.days} days left"

    return Countdown(left, status, text, total <= ONE_DAY, total <= ONE_HOUR)


def within(value: timedelta, threshold: timedelta, tolerance: timedelta) -> bool:
    return threshold - tolerance <= value <= threshold + tolerance


def should_show_notification(item: Any, now: datetime) -> bool:
    """True when an item is near one of the reminder thresholds, or starting soon."""
    state = countdown(item, now)
    total = state.time_left.total
    return (
        any(within(total, t, NOTIFICATION_TOLERANCE) for t in (FIFTEEN_MINUTES, ONE_HOUR, ONE_DAY))
        or state.status == "starting_soon"
    )


def urgency_level(item: Any, now: datetime) -> str:
    state = countdown(item, now)
    if state.status != "upcoming":
        return state.status
    if state.is_critical:
        return "critical"
    if state.is_urgent:
        return "urgent"
    return "normal"


# Display helpers


def meeting_duration(start_time: Instant, end_time: Optional[Instant]) -> str:
    if not end_time:
        return "No end time"
    duration = to_datetime(end_time) - to_datetime(start_time)
    if duration <= timedelta(0):
        return "Invalid duration"
    minutes_total = int(duration.total_seconds() // 60)
    hours, minutes = divmod(minutes_total, 60)
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    return f"{minutes}m"


def _clock_time(dt: datetime) -> str:
    return dt.strftime("%I:%M %p")


def format_meeting_time(
    value: Instant, now: datetime, tz: Optional[tzinfo] = None, include_date: bool = True
) -> str:
    """'Today at 09:30 AM', 'Tomorrow at ...', 'Mar 4 at ...', 'Mar 4, 2024 at ...'."""
    dt = to_datetime(value).astimezone(tz)
    time_str = _clock_time(dt)
    if not include_date:
        return time_str

    today = now.astimezone(tz).date()
    day = dt.date()
    if day == today:
        date_part = "Today"
    elif day == today - timedelta(days=1):
        date_part = "Yesterday"
    elif day == today + timedelta(days=1):
        date_part = "Tomorrow"
    else:
        date_part = f"{dt.strftime('%b')} {dt.day}"
        if dt.year != today.year:
            date_part += f", {dt.year}"
    return f"{date_part} at {time_str}"


def notification_title(item: Any, now: datetime) -> str:
    state = countdown(item, now)
    if state.status == "starting_soon":
        return "Meeting Starting Soon!"
    if state.status == "live":
        return "Meeting is Live"
    if state.status == "upcoming":
        if state.is_critical:
            return "Meeting in 1 Hour"
        if state.is_urgent:
            return "Meeting Tomorrow"
        return "Upcoming Meeting"
    return "Meeting Reminder"


def notification_message(item: Any, now: datetime, tz: Optional[tzinfo] = None) -> str:
    state = countdown(item, now)
    title = _get(item, "title", "")
    if state.status == "starting_soon":
        return f'"{title}" is starting in {state.display_text.replace(" left", "")}'
    if state.status == "live":
        return f'"{title}" is currently live'
    if state.status == "upcoming":
        return f'"{title}" is scheduled for {format_meeting_time(_get(item, "start_time"), now, tz)}'
    return f'"{title}" - {state.display_text}'


# Filters


def filter_by_day(items: Iterable[Any], day: Union[str, date], field: str, tz: Optional[tzinfo] = None) -> List[Any]:
    """Items whose `field` instant falls on `day`, in ascending order of that field."""
    key = day.isoformat() if isinstance(day, date) else day
    matched = [i for i in items if _get(i, field) and day_key(_get(i, field), tz) == key]
    return sorted(matched, key=lambda i: to_datetime(_get(i, field)))


def todays_items(items: Iterable[Any], now: datetime, field: str = "start_time", tz: Optional[tzinfo] = None) -> List[Any]:
    return filter_by_day(items, day_key(now, tz), field, tz)


def upcoming_items(
    items: Iterable[Any],
    now: datetime,
    limit: int = 5,
    statuses: Sequence[str] = UPCOMING_STATUSES,
) -> List[Any]:
    """Items starting strictly after `now` with a not-yet-started status, soonest first."""
    upcoming = [
        i for i in items
        if _get(i, "status") in statuses and to_datetime(_get(i, "start_time")) > now
    ]
    upcoming.sort(key=lambda i: to_datetime(_get(i, "start_time")))
    return upcoming[:limit]


# Aggregates


def aggregate(items: Iterable[Any], field: str) -> Dict[str, int]:
    """Counts per distinct value of `field`. Absent values get no bucket."""
    return dict(Counter(_get(i, field) for i in items if _get(i, field) is not None))


def summarize_tasks(tasks: Sequence[Any]) -> Dict[str, Any]:
    tasks = list(tasks)
    recent = sorted(
        (t for t in tasks if _get(t, "updated_at")),
        key=lambda t: to_datetime(_get(t, "updated_at")),
        reverse=True,
    )
    return {
        "total": len(tasks),
        "by_status": aggregate(tasks, "status"),
        "by_priority": aggregate(tasks, "priority"),
        "recently_updated": recent[:5],
    }


def task_stats(tasks: Iterable[Any], start: Instant, end: Instant, now: datetime) -> Dict[str, int]:
    """Statistics for tasks created within [start, end]."""
    start_dt, end_dt = to_datetime(start), to_datetime(end)
    in_window = [
        t for t in tasks
        if _get(t, "created_at") and start_dt <= to_datetime(_get(t, "created_at")) <= end_dt
    ]
    return {
        "completed": sum(1 for t in in_window if _get(t, "status") == "Completed"),
        "created": len(in_window),
        "in_progress": sum(1 for t in in_window if _get(t, "status") not in ("Completed", "To Do")),
        "overdue": sum(
            1 for t in in_window
            if _get(t, "status") != "Completed"
            and _get(t, "due_date")
            and to_datetime(_get(t, "due_date")) < now
        ),
    }
