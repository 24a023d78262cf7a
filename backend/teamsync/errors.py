"""
Domain exceptions shared by the store, repositories and services.
"""
from typing import List, Optional


class TeamSyncError(Exception):
    """Base class for all TeamSync errors."""


class StoreUnavailableError(TeamSyncError):
    """The document store could not be reached or failed mid-operation."""


class MissingIndexError(TeamSyncError):
    """The store rejected a query that needs a composite index."""


class ValidationError(TeamSyncError):
    """Caller-supplied data failed a precondition. Raised before any write."""

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.errors = errors or []


class PermissionDeniedError(TeamSyncError):
    """The acting user is not allowed to perform the operation."""


class EntityNotFoundError(TeamSyncError):
    """An operation required an existing document that is missing."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class PartialFanoutFailure(TeamSyncError):
    """A notification or activity write failed after the primary write succeeded."""

    def __init__(self, event: str, target: str, cause: Exception):
        super().__init__(f"{event}: failed to write {target}: {cause}")
        self.event = event
        self.target = target
        self.cause = cause
