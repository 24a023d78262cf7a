"""
In-process document store.

Used for local development and tests. Documents are deep-copied on the way in
and out so callers can never mutate stored state by reference.
"""
import copy
from typing import Callable, Dict, List, Optional

from teamsync.errors import EntityNotFoundError, StoreUnavailableError
from teamsync.store.base import Document, DocumentStore


class MemoryDocumentStore(DocumentStore):
    def __init__(self, strict_indexes: bool = False):
        super().__init__(strict_indexes=strict_indexes)
        self._collections: Dict[str, Dict[str, Document]] = {}
        # Flip to False to simulate a transport outage
        self.available = True

    def _ensure_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError("Document store is unavailable")

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        self._ensure_available()
        doc = self._collection(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def _load(self, collection: str) -> List[Document]:
        self._ensure_available()
        return [copy.deepcopy(d) for d in self._collection(collection).values()]

    async def _write(self, collection: str, doc_id: str, data: Document) -> None:
        self._ensure_available()
        self._collection(collection)[doc_id] = copy.deepcopy(data)

    async def _modify(
        self, collection: str, doc_id: str, change: Callable[[Document], Document]
    ) -> Document:
        self._ensure_available()
        docs = self._collection(collection)
        if doc_id not in docs:
            raise EntityNotFoundError(collection, doc_id)
        updated = change(copy.deepcopy(docs[doc_id]))
        docs[doc_id] = copy.deepcopy(updated)
        return updated

    async def _remove(self, collection: str, doc_id: str) -> bool:
        self._ensure_available()
        return self._collection(collection).pop(doc_id, None) is not None
