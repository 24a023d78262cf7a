"""
Role-based visibility.

Every repository listing and every live subscription asks `visibility_scope`
which documents a user may see, so the admin/developer rules exist once.
A scope carries at most one store-side filter (anything more would need a
composite index); the rest is an in-memory predicate.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from teamsync.models.user import User
from teamsync.store.base import Document, Filter, matches_all

COLLECTIONS = ("users", "projects", "tasks", "meetings", "reports", "notifications", "activities")


@dataclass(frozen=True)
class Scope:
    key: str
    collection: str
    filters: Tuple[Filter, ...] = ()
    predicate: Optional[Callable[[Document], bool]] = None
    deny_all: bool = False

    def allows(self, doc: Document) -> bool:
        if self.deny_all:
            return False
        if not matches_all(doc, self.filters):
            return False
        return self.predicate is None or self.predicate(doc)


def _assigned_or_everyone(uid: str) -> Callable[[Document], bool]:
    def predicate(doc: Document) -> bool:
        return bool(doc.get("is_assigned_to_all")) or uid in (doc.get("assigned_to") or [])

    return predicate


def visibility_scope(user: Optional[User], collection: str) -> Scope:
    """Scope of `collection` documents visible to `user`."""
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")

    if user is None or not user.approved:
        uid = user.uid if user else "anonymous"
        return Scope(key=f"{collection}:denied:{uid}", collection=collection, deny_all=True)

    uid = user.uid

    if collection == "notifications":
        return Scope(
            key=f"notifications:user:{uid}",
            collection=collection,
            filters=(Filter("user_id", "==", uid),),
        )

    if collection == "activities":
        return Scope(
            key=f"activities:user:{uid}",
            collection=collection,
            filters=(Filter("related_users", "array-contains", uid),),
        )

    # Every approved user sees every task
    if collection == "tasks":
        return Scope(key="tasks:all", collection=collection)

    if user.is_admin:
        return Scope(key=f"{collection}:all", collection=collection)

    if collection == "users":
        return Scope(
            key="users:approved",
            collection=collection,
            filters=(Filter("approved", "==", True),),
        )

    if collection == "projects":
        return Scope(
            key=f"projects:user:{uid}",
            collection=collection,
            filters=(Filter("assigned_to", "array-contains", uid),),
        )

    # meetings, reports
    return Scope(
        key=f"{collection}:user:{uid}",
        collection=collection,
        predicate=_assigned_or_everyone(uid),
    )
