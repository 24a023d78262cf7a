"""
Document store persisted in a single SQL table through SQLAlchemy's async engine.

Each row holds one document as JSON. Predicates are evaluated in Python after
loading the collection, which keeps the adapter portable across PostgreSQL and
SQLite. Live subscriptions are notified in-process after each commit.
"""
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import String, DateTime, JSON, select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import Mapped, mapped_column

from teamsync.database import Base, create_session_factory
from teamsync.errors import EntityNotFoundError, StoreUnavailableError
from teamsync.store.base import Document, DocumentStore


class DocumentRecord(Base):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class SqlDocumentStore(DocumentStore):
    def __init__(self, engine: AsyncEngine, strict_indexes: bool = False):
        super().__init__(strict_indexes=strict_indexes)
        self.engine = engine
        self._sessions = create_session_factory(engine)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        try:
            async with self._sessions() as session:
                record = await session.get(DocumentRecord, (collection, doc_id))
                return dict(record.data) if record else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    async def _load(self, collection: str) -> List[Document]:
        try:
            async with self._sessions() as session:
                result = await session.execute(
                    select(DocumentRecord).where(DocumentRecord.collection == collection)
                )
                return [dict(r.data) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    async def _write(self, collection: str, doc_id: str, data: Document) -> None:
        try:
            async with self._sessions() as session:
                record = await session.get(DocumentRecord, (collection, doc_id))
                if record is None:
                    session.add(DocumentRecord(collection=collection, id=doc_id, data=data))
                else:
                    record.data = data
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    async def _modify(
        self, collection: str, doc_id: str, change: Callable[[Document], Document]
    ) -> Document:
        try:
            async with self._sessions() as session:
                result = await session.execute(
                    select(DocumentRecord)
                    .where(
                        DocumentRecord.collection == collection,
                        DocumentRecord.id == doc_id,
                    )
                    .with_for_update()
                )
                record = result.scalar_one_or_none()
                if record is None:
                    raise EntityNotFoundError(collection, doc_id)
                updated = change(dict(record.data))
                # Assign a new object so the JSON column is flagged dirty
                record.data = updated
                await session.commit()
                return updated
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    async def _remove(self, collection: str, doc_id: str) -> bool:
        try:
            async with self._sessions() as session:
                result = await session.execute(
                    delete(DocumentRecord).where(
                        DocumentRecord.collection == collection,
                        DocumentRecord.id == doc_id,
                    )
                )
                await session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    async def close(self) -> None:
        await super().close()
        await self.engine.dispose()
