"""Meeting reminder scheduler.

On every tick each eligible meeting is checked against the reminder tiers in
order 1day -> 1hour -> 15min -> live. The first tier whose window matches and
that has not been sent yet fires, and nothing else fires for that meeting and
user on the same tick. A ledger remembers which (meeting, user, tier)
reminders went out so each is sent at most once.

Usage:
    scheduler = ReminderScheduler(meetings, notifications, users)
    await scheduler.start()          # all approved users
    # ... app runs ...
    scheduler.stop()
"""
import asyncio
import logging
from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Protocol, Set, Tuple

from teamsync.core.views import (
    FIFTEEN_MINUTES,
    ONE_DAY,
    ONE_HOUR,
    SCHEDULER_TOLERANCE,
    countdown,
    notification_message,
    notification_title,
    to_datetime,
    within,
)
from teamsync.models import Meeting, Notification, utc_clock
from teamsync.repositories import MeetingRepository, NotificationRepository, SentReminderRepository, UserRepository

logger = logging.getLogger(__name__)

# Tier -> threshold before start; the live tier has no threshold
TIER_WINDOWS = (
    ("1day", ONE_DAY),
    ("1hour", ONE_HOUR),
    ("15min", FIFTEEN_MINUTES),
)

# Tier -> notification kind
TIER_KINDS = {
    "1day": "reminder",
    "1hour": "reminder",
    "15min": "starting",
    "live": "live",
}

REMINDABLE_STATUSES = ("Scheduled", "In Progress")


class ReminderLedger(Protocol):
    async def has(self, meeting_id: str, user_id: str, tier: str) -> bool: ...

    async def record(self, meeting_id: str, user_id: str, tier: str) -> None: ...

    async def sent(self, meeting_id: str, user_id: str) -> Set[str]: ...

    async def clear(self, meeting_id: str, user_id: str) -> None: ...


class MemoryReminderLedger:
    """Process-lifetime ledger. Forgets everything on restart."""

    def __init__(self):
        self._sent: Dict[Tuple[str, str], Set[str]] = {}

    async def has(self, meeting_id: str, user_id: str, tier: str) -> bool:
        return tier in self._sent.get((meeting_id, user_id), set())

    async def record(self, meeting_id: str, user_id: str, tier: str) -> None:
        self._sent.setdefault((meeting_id, user_id), set()).add(tier)

    async def sent(self, meeting_id: str, user_id: str) -> Set[str]:
        return set(self._sent.get((meeting_id, user_id), set()))

    async def clear(self, meeting_id: str, user_id: str) -> None:
        self._sent.pop((meeting_id, user_id), None)


class StoreReminderLedger:
    """Ledger persisted in the `sent_reminders` collection; survives restarts."""

    def __init__(self, repository: SentReminderRepository):
        self.repository = repository

    async def has(self, meeting_id: str, user_id: str, tier: str) -> bool:
        return await self.repository.has(meeting_id, user_id, tier)

    async def record(self, meeting_id: str, user_id: str, tier: str) -> None:
        await self.repository.record(meeting_id, user_id, tier)

    async def sent(self, meeting_id: str, user_id: str) -> Set[str]:
        return {r.tier for r in await self.repository.list_for(meeting_id, user_id)}

    async def clear(self, meeting_id: str, user_id: str) -> None:
        await self.repository.clear(meeting_id, user_id)


def select_tier(
    meeting: Meeting,
    now: datetime,
    already_sent: Set[str],
    tolerance: timedelta = SCHEDULER_TOLERANCE,
) -> Optional[str]:
    """The single tier to fire for this meeting now, or None."""
    to_start = to_datetime(meeting.start_time) - now
    for tier, threshold in TIER_WINDOWS:
        if within(to_start, threshold, tolerance) and tier not in already_sent:
            return tier
    if countdown(meeting, now).status == "live" and "live" not in already_sent:
        return "live"
    return None


def is_eligible(meeting: Meeting, now: datetime, lookahead: timedelta) -> bool:
    """Remindable status, and either starting within the lookahead or live now."""
    if meeting.status not in REMINDABLE_STATUSES:
        return False
    start = to_datetime(meeting.start_time)
    if now < start <= now + lookahead:
        return True
    return countdown(meeting, now).status == "live"


class ReminderScheduler:
    """Runs reminder sweeps on a fixed interval as an asyncio background task."""

    def __init__(
        self,
        meetings: MeetingRepository,
        notifications: NotificationRepository,
        users: UserRepository,
        ledger: Optional[ReminderLedger] = None,
        clock=None,
        tz: Optional[tzinfo] = None,
        interval_seconds: float = 5 * 60,
        tolerance: timedelta = SCHEDULER_TOLERANCE,
        lookahead: timedelta = timedelta(days=7),
        enabled: bool = True,
    ) -> None:
        self.meetings = meetings
        self.notifications = notifications
        self.users = users
        self.ledger = ledger or MemoryReminderLedger()
        self.clock = clock or utc_clock
        self.tz = tz
        self.interval_seconds = interval_seconds
        self.tolerance = tolerance
        self.lookahead = lookahead
        self.enabled = enabled
        self.user_id: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self, user_id: Optional[str] = None) -> None:
        """Run one sweep right away, then keep sweeping in the background.

        With no user_id every approved user is swept.
        """
        if not self.enabled:
            logger.info("Reminder scheduler disabled")
            return

        if self._running:
            logger.warning("Reminder scheduler already running")
            return

        self.user_id = user_id
        self._running = True
        self._stopped = False
        await self._safe_tick()
        if self._running:
            self._task = asyncio.create_task(self._loop())
            logger.info(
                "Reminder scheduler started (interval: %.0fs, user: %s)",
                self.interval_seconds,
                user_id or "all",
            )

    def stop(self) -> None:
        """Stop the scheduler. No reminder is written after this returns."""
        self._running = False
        self._stopped = True
        if self._task and not self._task.done():
            self._task.cancel()
            logger.info("Reminder scheduler stopped")

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if not self._running:
                    break
                await self._safe_tick()
            except asyncio.CancelledError:
                break

    async def _safe_tick(self) -> None:
        try:
            await self.tick(self.user_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Reminder tick failed: %s", e, exc_info=True)

    async def tick(self, user_id: Optional[str] = None) -> List[Notification]:
        """One sweep for one user, or every approved user when user_id is None."""
        now = self.clock()
        if user_id is None:
            user_ids = [u.uid for u in await self.users.list_approved()]
        else:
            user_ids = [user_id]

        sent: List[Notification] = []
        for uid in user_ids:
            if self._stopped:
                break
            sent.extend(await self.check_user(uid, now))
        return sent

    async def check_user(self, user_id: str, now: Optional[datetime] = None) -> List[Notification]:
        now = now or self.clock()
        user = await self.users.get(user_id)
        if user is None or not user.approved:
            return []

        meetings = [m for m in await self.meetings.list_for_user(user_id) if is_eligible(m, now, self.lookahead)]
        sent = []
        for meeting in meetings:
            already_sent = await self.ledger.sent(meeting.id, user_id)
            tier = select_tier(meeting, now, already_sent, self.tolerance)
            if tier is None:
                continue
            if self._stopped:
                break
            try:
                notification = await self.create_meeting_notification(meeting, user_id, TIER_KINDS[tier], tier, now)
            except Exception as e:
                logger.error("Reminder for meeting %s to %s failed: %s", meeting.id, user_id, e)
                continue
            await self.ledger.record(meeting.id, user_id, tier)
            sent.append(notification)
        return sent

    async def create_meeting_notification(
        self,
        meeting: Meeting,
        user_id: str,
        kind: str,
        tier: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Notification:
        now = now or self.clock()
        title = notification_title(meeting, now)
        severity = "info"
        if kind == "starting":
            severity = "warning"
            title = "Meeting Starting Soon!"
        elif kind == "live":
            severity = "success"
            title = "Meeting is Live"

        notification = await self.notifications.create(
            user_id=user_id,
            title=title,
            message=notification_message(meeting, now, self.tz),
            type=severity,
            action_type="meeting_reminder",
            meeting_id=meeting.id,
            metadata={
                "meeting_title": meeting.title,
                "meeting_start_time": meeting.start_time,
                "reminder_type": kind,
                "tier": tier,
                "priority": meeting.priority,
            },
        )
        logger.info("Meeting reminder sent to %s: %s", user_id, title)
        return notification

    async def clear_meeting_notifications(self, meeting_id: str, user_id: str) -> int:
        """Forget the sent tiers for this meeting and user and mark their reminders read."""
        await self.ledger.clear(meeting_id, user_id)
        cleared = 0
        for notification in await self.notifications.list_for_meeting(user_id, meeting_id):
            if notification.action_type == "meeting_reminder" and not notification.read:
                await self.notifications.mark_read(notification.id)
                cleared += 1
        return cleared
