"""Shared test fixtures for TeamSync backend tests."""

import os
from datetime import timezone

import pytest

os.environ.setdefault("TEAMSYNC_STORE_BACKEND", "memory")
os.environ.setdefault("TEAMSYNC_REMINDER_ENABLED", "false")

from teamsync.core.workspace import Workspace
from teamsync.store.memory import MemoryDocumentStore

from helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    # Strict indexes so any query needing a composite index fails loudly
    return MemoryDocumentStore(strict_indexes=True)


@pytest.fixture
def workspace(store, clock):
    return Workspace(store, clock=clock, tz=timezone.utc)


@pytest.fixture
async def admin(workspace):
    return await workspace.users.create_user(
        "admin-1", display_name="Ada Admin", email="ada@example.com", role="admin", approved=True
    )


@pytest.fixture
async def dev(workspace):
    return await workspace.users.create_user(
        "dev-1", display_name="Dan Dev", email="dan@example.com", role="developer", approved=True
    )


@pytest.fixture
async def dev2(workspace):
    return await workspace.users.create_user(
        "dev-2", display_name="Dee Dev", email="dee@example.com", role="developer", approved=True
    )


@pytest.fixture
async def pending(workspace):
    return await workspace.users.ensure_user({"uid": "new-1", "email": "new@example.com", "display_name": "Nia New"})
