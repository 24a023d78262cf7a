"""
Document store adapter interface.

A store holds named collections of JSON-like documents keyed by string IDs and
offers point reads, filtered queries, live subscriptions and single-document
writes. Concrete stores implement the storage primitives; query evaluation,
index emulation and listener fan-out live here so every backend behaves the same.
"""
import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from teamsync.errors import MissingIndexError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "array-contains")


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def matches(self, doc: Document) -> bool:
        actual = doc.get(self.field)
        if self.op == "==":
            return actual == self.value
        if self.op == "!=":
            return actual != self.value
        if self.op == "in":
            return actual in self.value
        if self.op == "array-contains":
            return isinstance(actual, list) and self.value in actual
        if actual is None:
            return False
        try:
            if self.op == "<":
                return actual < self.value
            if self.op == "<=":
                return actual <= self.value
            if self.op == ">":
                return actual > self.value
            return actual >= self.value
        except TypeError:
            return False


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


def matches_all(doc: Document, filters: Sequence[Filter]) -> bool:
    return all(f.matches(doc) for f in filters)


def sort_documents(docs: List[Document], order_by: Optional[OrderBy]) -> List[Document]:
    """Stable sort; documents missing the field sort after the rest."""
    if order_by is None:
        return list(docs)
    present = [d for d in docs if d.get(order_by.field) is not None]
    missing = [d for d in docs if d.get(order_by.field) is None]
    present.sort(key=lambda d: d[order_by.field], reverse=order_by.descending)
    return present + missing


def apply_query(
    docs: Iterable[Document],
    filters: Sequence[Filter] = (),
    order_by: Optional[OrderBy] = None,
    limit: Optional[int] = None,
) -> List[Document]:
    result = sort_documents([d for d in docs if matches_all(d, filters)], order_by)
    if limit is not None:
        result = result[:limit]
    return result


def needs_composite_index(filters: Sequence[Filter], order_by: Optional[OrderBy]) -> bool:
    """True when a query combines predicates the way hosted stores require an index for."""
    fields = {f.field for f in filters}
    if len(fields) > 1:
        return True
    return bool(fields) and order_by is not None and order_by.field not in fields


@dataclass(eq=False)
class _Listener:
    collection: str
    filters: tuple
    order_by: Optional[OrderBy]
    on_snapshot: SnapshotCallback
    on_error: Optional[ErrorCallback]
    active: bool = True
    scheduled: int = 0
    delivered: int = 0


@dataclass
class _ListenerRegistry:
    by_collection: Dict[str, List[_Listener]] = field(default_factory=dict)

    def add(self, listener: _Listener) -> None:
        self.by_collection.setdefault(listener.collection, []).append(listener)

    def remove(self, listener: _Listener) -> None:
        listeners = self.by_collection.get(listener.collection, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self.by_collection.pop(listener.collection, None)

    def for_collection(self, collection: str) -> List[_Listener]:
        return list(self.by_collection.get(collection, []))


class DocumentStore(ABC):
    """
    Generic document store.

    Writes notify live subscriptions of the touched collection. Snapshots are
    delivered as separate event-loop tasks, so a writer never waits on
    listeners and a listener always sees a committed state.
    """

    def __init__(self, strict_indexes: bool = False):
        self.strict_indexes = strict_indexes
        self._listeners = _ListenerRegistry()
        self._pending: set = set()

    # Storage primitives

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Point read. Returns None if the document does not exist."""

    @abstractmethod
    async def _load(self, collection: str) -> List[Document]:
        """Load every document of a collection."""

    @abstractmethod
    async def _write(self, collection: str, doc_id: str, data: Document) -> None:
        """Replace a document."""

    @abstractmethod
    async def _modify(
        self, collection: str, doc_id: str, change: Callable[[Document], Document]
    ) -> Document:
        """Atomically read-modify-write one document. Raises EntityNotFoundError if missing."""

    @abstractmethod
    async def _remove(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""

    # Public API

    def new_id(self) -> str:
        return uuid.uuid4().hex[:20]

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        self._check_index(collection, filters, order_by)
        return apply_query(await self._load(collection), filters, order_by, limit)

    async def set(self, collection: str, doc_id: str, data: Document) -> Document:
        stored = {**data, "id": doc_id}
        await self._write(collection, doc_id, stored)
        self.notify(collection)
        return stored

    async def update(self, collection: str, doc_id: str, data: Document) -> Document:
        """Shallow-merge fields into an existing document."""
        updated = await self._modify(collection, doc_id, lambda doc: {**doc, **data, "id": doc_id})
        self.notify(collection)
        return updated

    async def array_union(
        self, collection: str, doc_id: str, field_name: str, values: Sequence[Any], extra: Document = None
    ) -> Document:
        """Atomically append values not already present to an array field."""

        def change(doc: Document) -> Document:
            current = list(doc.get(field_name) or [])
            for value in values:
                if value not in current:
                    current.append(value)
            return {**doc, **(extra or {}), field_name: current, "id": doc_id}

        updated = await self._modify(collection, doc_id, change)
        self.notify(collection)
        return updated

    async def delete(self, collection: str, doc_id: str) -> bool:
        removed = await self._remove(collection, doc_id)
        if removed:
            self.notify(collection)
        return removed

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        filters: Sequence[Filter] = (),
        order_by: Optional[OrderBy] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> Unsubscribe:
        """
        Listen to a query. The current result is delivered right away and again
        after every write to the collection. The returned function detaches the
        listener and is safe to call more than once.
        """
        self._check_index(collection, filters, order_by)
        listener = _Listener(collection, tuple(filters), order_by, on_snapshot, on_error)
        self._listeners.add(listener)
        self._schedule(listener)

        def unsubscribe() -> None:
            if listener.active:
                listener.active = False
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, collection: str) -> None:
        """Push a fresh snapshot to every listener of a collection."""
        for listener in self._listeners.for_collection(collection):
            self._schedule(listener)

    def listener_count(self, collection: Optional[str] = None) -> int:
        if collection is not None:
            return len(self._listeners.for_collection(collection))
        return sum(len(v) for v in self._listeners.by_collection.values())

    async def flush(self) -> None:
        """Wait until every scheduled snapshot delivery has run."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.flush()

    # Internals

    def _check_index(self, collection: str, filters: Sequence[Filter], order_by: Optional[OrderBy]) -> None:
        if self.strict_indexes and needs_composite_index(filters, order_by):
            raise MissingIndexError(
                f"Query on '{collection}' requires a composite index "
                f"(filters={[f.field for f in filters]}, order_by={order_by.field if order_by else None})"
            )

    def _schedule(self, listener: _Listener) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; dropping snapshot for '%s'", listener.collection)
            return
        listener.scheduled += 1
        task = loop.create_task(self._deliver(listener, listener.scheduled))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, listener: _Listener, seq: int) -> None:
        if not listener.active:
            return
        try:
            docs = apply_query(await self._load(listener.collection), listener.filters, listener.order_by)
        except Exception as e:
            if listener.active and listener.on_error is not None:
                listener.on_error(e)
            elif listener.active:
                logger.warning("Snapshot for '%s' failed: %s", listener.collection, e)
            return
        # Drop out-of-order snapshots and anything that lands after unsubscribe
        if not listener.active or seq < listener.delivered:
            return
        listener.delivered = seq
        try:
            listener.on_snapshot(docs)
        except Exception:
            logger.exception("Snapshot callback for '%s' raised", listener.collection)
