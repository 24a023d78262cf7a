"""
Live subscriptions and dashboard view publication.

`SubscriptionManager` keeps at most one store listener per scope key. It
guards every callback against teardown races, so a cancelled or replaced
subscription never publishes. `DashboardSync` builds on it to keep a user's
projects, tasks and meetings in sync and publishes the derived views as one
immutable set.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from teamsync.core.views import filter_by_day, day_key, summarize_tasks, todays_items, upcoming_items
from teamsync.core.visibility import Scope, visibility_scope
from teamsync.models import Meeting, Project, Task, User, utc_clock
from teamsync.store.base import Document, DocumentStore, OrderBy, Unsubscribe, sort_documents

logger = logging.getLogger(__name__)

EntityFactory = Callable[[Document], Any]


@dataclass(frozen=True)
class LiveState:
    """What a subscriber sees: the current items plus loading and error flags."""

    items: Tuple[Any, ...] = ()
    loading: bool = True
    error: Optional[str] = None


@dataclass(eq=False)
class _Handle:
    scope: Scope
    unsubscribe: Optional[Unsubscribe] = None
    last_good: Tuple[Any, ...] = ()


class SubscriptionManager:
    """
    Scope-keyed live queries.

    Subscribing to a key that already has a listener cancels the old one
    first. Callbacks from a handle that is no longer the current one for its
    key are dropped.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self._handles: Dict[str, _Handle] = {}

    @property
    def active_keys(self) -> List[str]:
        return list(self._handles)

    def is_active(self, key: str) -> bool:
        return key in self._handles

    def subscribe(
        self,
        scope: Scope,
        callback: Callable[[LiveState], None],
        to_entity: EntityFactory = dict,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> Unsubscribe:
        self.unsubscribe(scope.key)
        handle = _Handle(scope)
        self._handles[scope.key] = handle

        def current() -> bool:
            return self._handles.get(scope.key) is handle

        def on_snapshot(docs: List[Document]) -> None:
            if not current():
                return
            try:
                visible = sort_documents([d for d in docs if scope.allows(d)], order_by)
                if limit is not None:
                    visible = visible[:limit]
                items = tuple(to_entity(d) for d in visible)
            except Exception as e:
                on_error(e)
                return
            handle.last_good = items
            callback(LiveState(items, loading=False))

        def on_error(exc: Exception) -> None:
            if not current():
                return
            logger.warning("Live query '%s' failed: %s", scope.key, exc)
            callback(LiveState(handle.last_good, loading=False, error=str(exc)))

        if scope.deny_all:
            self._deliver_soon(lambda: on_snapshot([]))
        else:
            try:
                # Ordering is applied here, so the store only sees the scope's single filter
                handle.unsubscribe = self.store.subscribe(
                    scope.collection, on_snapshot, filters=scope.filters, on_error=on_error
                )
            except Exception as e:
                self._deliver_soon(lambda exc=e: on_error(exc))

        def unsubscribe() -> None:
            if current():
                self.unsubscribe(scope.key)

        return unsubscribe

    def unsubscribe(self, key: str) -> None:
        """Cancel the subscription for `key`. Safe to call when none exists."""
        handle = self._handles.pop(key, None)
        if handle is not None and handle.unsubscribe is not None:
            handle.unsubscribe()

    def unsubscribe_all(self) -> None:
        for key in list(self._handles):
            self.unsubscribe(key)

    @staticmethod
    def _deliver_soon(fn: Callable[[], None]) -> None:
        try:
            asyncio.get_running_loop().call_soon(fn)
        except RuntimeError:
            fn()


@dataclass(frozen=True)
class DashboardViews:
    projects: Tuple[Project, ...]
    tasks: Tuple[Task, ...]
    meetings: Tuple[Meeting, ...]
    todays_meetings: Tuple[Meeting, ...]
    upcoming_meetings: Tuple[Meeting, ...]
    todays_tasks: Tuple[Task, ...]
    task_summary: Mapping[str, Any]
    errors: Mapping[str, bool]
    loading: bool
    generated_at: str

    def to_dict(self) -> Dict[str, Any]:
        summary = dict(self.task_summary)
        summary["recently_updated"] = [t.model_dump() for t in summary.get("recently_updated", [])]
        return {
            "projects": [p.model_dump() for p in self.projects],
            "tasks": [t.model_dump() for t in self.tasks],
            "meetings": [m.model_dump() for m in self.meetings],
            "todays_meetings": [m.model_dump() for m in self.todays_meetings],
            "upcoming_meetings": [m.model_dump() for m in self.upcoming_meetings],
            "todays_tasks": [t.model_dump() for t in self.todays_tasks],
            "task_summary": summary,
            "errors": dict(self.errors),
            "loading": self.loading,
            "generated_at": self.generated_at,
        }


DASHBOARD_COLLECTIONS = {
    "projects": (Project, OrderBy("updated_at", descending=True)),
    "tasks": (Task, OrderBy("updated_at", descending=True)),
    "meetings": (Meeting, OrderBy("start_time")),
}


@dataclass
class _Slot:
    state: LiveState = field(default_factory=LiveState)
    delivered: bool = False


class DashboardSync:
    """
    Keeps one user's projects/tasks/meetings live and republishes the derived
    dashboard after every delivery. Nothing is published until all three
    collections have delivered at least once.

    Usage:
        sync = DashboardSync(store, user)
        remove = sync.add_listener(on_views)
        sync.start()
        ...
        sync.stop()
    """

    def __init__(
        self,
        store: DocumentStore,
        user: Optional[User],
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        upcoming_limit: int = 10,
    ):
        self.user = user
        self.clock = clock or utc_clock
        self.tz = tz
        self.upcoming_limit = upcoming_limit
        self._manager = SubscriptionManager(store)
        self._slots: Dict[str, _Slot] = {}
        self._listeners: List[Callable[[DashboardViews], None]] = []
        self._running = False
        self.latest: Optional[DashboardViews] = None

    def add_listener(self, listener: Callable[[DashboardViews], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._slots = {name: _Slot() for name in DASHBOARD_COLLECTIONS}
        for name, (model, order_by) in DASHBOARD_COLLECTIONS.items():
            self._manager.subscribe(
                visibility_scope(self.user, name),
                self._on_state(name),
                to_entity=model.model_validate,
                order_by=order_by,
            )

    def stop(self) -> None:
        self._running = False
        self._manager.unsubscribe_all()

    @property
    def running(self) -> bool:
        return self._running

    def _on_state(self, name: str) -> Callable[[LiveState], None]:
        def handle(state: LiveState) -> None:
            if not self._running:
                return
            slot = self._slots[name]
            slot.state = state
            slot.delivered = True
            if all(s.delivered for s in self._slots.values()):
                self._publish()

        return handle

    def _publish(self) -> None:
        views = self.build_views()
        self.latest = views
        for listener in list(self._listeners):
            try:
                listener(views)
            except Exception:
                logger.exception("Dashboard listener raised")

    def build_views(self) -> DashboardViews:
        now = self.clock()
        projects = self._slots["projects"].state.items
        tasks = self._slots["tasks"].state.items
        meetings = self._slots["meetings"].state.items
        return DashboardViews(
            projects=projects,
            tasks=tasks,
            meetings=meetings,
            todays_meetings=tuple(todays_items(meetings, now, tz=self.tz)),
            upcoming_meetings=tuple(upcoming_items(meetings, now, limit=self.upcoming_limit)),
            todays_tasks=tuple(filter_by_day(tasks, day_key(now, self.tz), "due_date", self.tz)),
            task_summary=MappingProxyType(summarize_tasks(tasks)),
            errors=MappingProxyType({name: slot.state.error is not None for name, slot in self._slots.items()}),
            loading=any(slot.state.loading for slot in self._slots.values()),
            generated_at=now.isoformat(),
        )
