"""
Server-Sent Events for live views.

Each connection owns its own subscription. Snapshots are pushed through a
bounded queue; when a slow client falls behind, older snapshots are dropped
because every snapshot supersedes the previous one.
"""
import asyncio
import json
import logging
from typing import Any, AsyncGenerator, Callable, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from teamsync.api.deps import get_current_user, get_workspace
from teamsync.core.subscriptions import DashboardViews, LiveState
from teamsync.core.workspace import SUBSCRIBABLE, Workspace
from teamsync.models import User

logger = logging.getLogger(__name__)

router = APIRouter()

HEARTBEAT_SECONDS = 30.0
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
STREAMABLE = ("projects", "tasks", "meetings", "reports", "notifications", "activities")


def format_sse(event: str, data: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


def _offer(queue: "asyncio.Queue[Optional[str]]", chunk: str) -> None:
    """Put without blocking, dropping the oldest snapshot when full."""
    while True:
        try:
            queue.put_nowait(chunk)
            return
        except asyncio.QueueFull:
            try:
                queue.get_nowait()
            except asyncio.QueueEmpty:
                pass


async def event_generator(
    queue: "asyncio.Queue[Optional[str]]",
    release: Callable[[], None],
    heartbeat_interval: float = HEARTBEAT_SECONDS,
) -> AsyncGenerator[str, None]:
    try:
        while True:
            try:
                chunk = await asyncio.wait_for(queue.get(), timeout=heartbeat_interval)
                if chunk is None:
                    break
                yield chunk
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"
    finally:
        release()


def _state_payload(collection: str, state: LiveState) -> Dict[str, Any]:
    return {
        "collection": collection,
        "items": [item.model_dump() for item in state.items],
        "loading": state.loading,
        "error": state.error,
    }


@router.get("/dashboard")
async def stream_dashboard(
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Stream the caller's dashboard views, republished on every change."""
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=10)

    def on_views(views: DashboardViews) -> None:
        _offer(queue, format_sse("dashboard", views.to_dict()))

    sync = workspace.dashboard(current_user)
    sync.add_listener(on_views)
    if sync.latest is not None:
        on_views(sync.latest)

    def release() -> None:
        workspace.release_dashboard(sync)
        logger.debug("Dashboard stream closed for %s", current_user.uid)

    return StreamingResponse(event_generator(queue, release), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/{collection}")
async def stream_collection(
    collection: str,
    workspace: Workspace = Depends(get_workspace),
    current_user: User = Depends(get_current_user),
):
    """Stream one collection as the caller sees it."""
    if collection not in STREAMABLE or collection not in SUBSCRIBABLE:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown collection")
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=10)

    def on_state(state: LiveState) -> None:
        _offer(queue, format_sse(collection, _state_payload(collection, state)))

    unsubscribe = workspace.subscribe(current_user, collection, on_state)
    return StreamingResponse(event_generator(queue, unsubscribe), media_type="text/event-stream", headers=SSE_HEADERS)
