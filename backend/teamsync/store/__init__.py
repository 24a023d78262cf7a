"""
Document store adapters.
"""
from teamsync.store.base import (
    Document,
    DocumentStore,
    Filter,
    OrderBy,
    Unsubscribe,
    apply_query,
    needs_composite_index,
)
from teamsync.store.memory import MemoryDocumentStore

__all__ = [
    "Document",
    "DocumentStore",
    "Filter",
    "OrderBy",
    "Unsubscribe",
    "apply_query",
    "needs_composite_index",
    "MemoryDocumentStore",
]
