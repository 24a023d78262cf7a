"""
User repository.
"""
from typing import List, Optional

from teamsync.models.user import User
from teamsync.repositories.base import BaseRepository, validate
from teamsync.schemas.user import SignIn
from teamsync.store.base import Filter, OrderBy


class UserRepository(BaseRepository[User]):
    collection = "users"
    model = User
    protected_fields = ("id", "uid", "created_at", "updated_at")

    async def ensure_user(self, data) -> User:
        """Return the user for a sign-in, creating an unapproved developer on first sign-in."""
        sign_in = validate(SignIn, data)
        existing = await self.get(sign_in.uid)
        if existing:
            return existing
        return await self._create(
            {
                **sign_in.model_dump(),
                "uid": sign_in.uid,
                "role": "developer",
                "approved": False,
                "projects": [],
            },
            doc_id=sign_in.uid,
        )

    async def create_user(self, uid: str, **fields) -> User:
        return await self._create({**fields, "uid": uid}, doc_id=uid)

    async def update_user(self, uid: str, **changes) -> Optional[User]:
        return await self._update(uid, changes)

    async def approve(self, uid: str) -> Optional[User]:
        return await self._update(uid, {"approved": True})

    async def set_presence(self, uid: str, is_online: bool) -> Optional[User]:
        return await self._update(uid, {"is_online": is_online, "last_seen": self.now_iso()})

    async def add_project(self, uid: str, project_id: str) -> Optional[User]:
        return await self._append(uid, "projects", [project_id])

    async def list_pending(self) -> List[User]:
        return await self.fetch(
            [Filter("approved", "==", False)], order_by=OrderBy("created_at", descending=True)
        )

    async def list_approved(self) -> List[User]:
        return await self.fetch(
            [Filter("approved", "==", True)], order_by=OrderBy("created_at", descending=True)
        )

    async def list_all(self) -> List[User]:
        return await self.fetch(order_by=OrderBy("created_at", descending=True))

    async def approved_ids(self, uids) -> List[str]:
        """Filter user IDs down to approved users, preserving order and dropping duplicates."""
        approved = {u.uid for u in await self.list_approved()}
        result = []
        for uid in uids:
            if uid in approved and uid not in result:
                result.append(uid)
        return result
