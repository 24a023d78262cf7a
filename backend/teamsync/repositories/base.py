"""
Base repository over the document store.

Repositories own ID generation and timestamps: `created_at` is stamped on
create, `updated_at` on every write, and caller-supplied values for either are
discarded. Point reads return None for missing documents.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Type, TypeVar

import pydantic
from pydantic import BaseModel

from teamsync.core.visibility import Scope
from teamsync.errors import ValidationError
from teamsync.models.base import utc_clock
from teamsync.store.base import Document, DocumentStore, Filter, OrderBy, apply_query, needs_composite_index

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)
S = TypeVar("S", bound=BaseModel)

Clock = Callable[[], datetime]

PROTECTED_FIELDS = ("id", "created_at", "updated_at")


def validate(schema: Type[S], data: Any) -> S:
    """Coerce caller data into a request schema, raising ValidationError on failure."""
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"Invalid {schema.__name__}: {e.error_count()} error(s)",
            e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


class BaseRepository(Generic[T]):
    collection: str = ""
    model: Type[T]
    protected_fields: Sequence[str] = PROTECTED_FIELDS

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or utc_clock

    def now_iso(self) -> str:
        return self.clock().isoformat()

    def to_entity(self, doc: Document) -> T:
        return self.model.model_validate(doc)

    def _clean(self, data: Dict[str, Any], protected: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        protected = self.protected_fields if protected is None else protected
        return {k: v for k, v in data.items() if k not in protected}

    def _derived(self, doc: Document) -> Dict[str, Any]:
        """Fields computed from the rest of the document on every write."""
        return {}

    async def get(self, doc_id: str) -> Optional[T]:
        doc = await self.store.get(self.collection, doc_id)
        return self.to_entity(doc) if doc is not None else None

    async def _create(self, data: Dict[str, Any], doc_id: Optional[str] = None) -> T:
        now = self.now_iso()
        doc_id = doc_id or self.store.new_id()
        doc = {**self._clean(data, PROTECTED_FIELDS), "created_at": now, "updated_at": now}
        doc.update(self._derived(doc))
        # Build the entity first so a malformed document never reaches the store
        entity = self.to_entity({**doc, "id": doc_id})
        await self.store.set(self.collection, doc_id, entity.model_dump())
        return entity

    async def _update(self, doc_id: str, changes: Dict[str, Any]) -> Optional[T]:
        existing = await self.store.get(self.collection, doc_id)
        if existing is None:
            return None
        changes = {**self._clean(changes), "updated_at": self.now_iso()}
        changes.update(self._derived({**existing, **changes}))
        self.to_entity({**existing, **changes})
        doc = await self.store.update(self.collection, doc_id, changes)
        return self.to_entity(doc)

    async def _append(
        self,
        doc_id: str,
        field_name: str,
        values: Iterable[Any],
        extra: Optional[Dict[str, Any]] = None,
        touch: bool = True,
    ) -> Optional[T]:
        existing = await self.store.get(self.collection, doc_id)
        if existing is None:
            return None
        extra = dict(extra or {})
        if touch:
            extra["updated_at"] = self.now_iso()
        doc = await self.store.array_union(self.collection, doc_id, field_name, list(values), extra=extra)
        return self.to_entity(doc)

    async def delete(self, doc_id: str) -> bool:
        return await self.store.delete(self.collection, doc_id)

    async def fetch(
        self,
        filters: Sequence[Filter] = (),
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
        predicate: Optional[Callable[[Document], bool]] = None,
    ) -> List[T]:
        """
        Query without relying on composite indexes.

        Only the first filter is sent to the store. When more predicates or an
        ordering on another field are involved, the broader result is filtered,
        sorted and truncated in memory.
        """
        filters = list(filters)
        server_filters = filters[:1]
        local_filters = filters[1:]
        if local_filters or predicate is not None or needs_composite_index(server_filters, order_by):
            docs = await self.store.query(self.collection, server_filters)
            docs = apply_query(docs, local_filters, order_by)
            if predicate is not None:
                docs = [d for d in docs if predicate(d)]
            if limit is not None:
                docs = docs[:limit]
        else:
            docs = await self.store.query(self.collection, server_filters, order_by, limit)
        return [self.to_entity(d) for d in docs]

    async def list_in_scope(
        self,
        scope: Scope,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        if scope.deny_all:
            return []
        return await self.fetch(scope.filters, order_by, limit, scope.predicate)
