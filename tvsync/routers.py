import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Annotated, AsyncIterator

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tvsync.database import get_db
from tvsync.dependencies import get_publisher, get_scheduler, get_sync_manager
from tvsync.schemas import (
    Category,
    Channel,
    ChannelGroup,
    CredentialRequest,
    CredentialResponse,
    ErrorDetail,
    GroupedChannelsResponse,
    ReachabilityResponse,
    StandardErrorResponse,
    StreamUrlResponse,
)
from tvsync.services.credential_service import (
    add_credential,
    get_active_credential,
    remove_credentials,
    to_payload,
)
from tvsync.services.db_service import get_channel_by_stream_id, list_categories, list_channels
from tvsync.services.errors import InvalidURLError
from tvsync.services.scheduler_service import SyncScheduler
from tvsync.services.sync_service import SyncManager
from tvsync.services.sync_state import SyncState, SyncStatePublisher
from tvsync.services.sync_types import CredentialPayload, SyncKind, SyncResult
from tvsync.utils.grouping import group_channels_by_category


logger = logging.getLogger(__name__)

main_router = APIRouter()

DbSession = Annotated[AsyncSession, Depends(get_db)]
Manager = Annotated[SyncManager, Depends(get_sync_manager)]
Publisher = Annotated[SyncStatePublisher, Depends(get_publisher)]
Scheduler = Annotated[SyncScheduler, Depends(get_scheduler)]

SSE_KEEPALIVE_SEC = 15.0


def error_response(
    status_code: int,
    code: str,
    message: str,
    context: dict | None = None,
) -> JSONResponse:
    """Render a StandardErrorResponse"""
    body = StandardErrorResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        error=ErrorDetail(code=code, message=message, context=context),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _no_credentials() -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, "NO_CREDENTIALS", "No credentials stored")


async def _active_payload(db: AsyncSession) -> CredentialPayload | None:
    credential = await get_active_credential(db)
    return to_payload(credential) if credential else None


@main_router.get("/")
async def root(scheduler: Scheduler) -> dict:
    """Root endpoint with service information"""
    next_run = scheduler.get_next_run_time()

    return {
        "service": "TV Sync Service",
        "version": "0.1.0",
        "next_scheduled_sync": next_run.isoformat() if next_run else None,
        "endpoints": {
            "credentials": "/credentials - Sign in (POST), show (GET), sign out (DELETE)",
            "sync": "/sync, /sync/{kind} - Refresh channels and categories (POST)",
            "state": "/sync/state, /sync/events - Observable sync state",
            "channels": "/channels, /channels/grouped, /channels/{stream_id}/stream-url",
            "categories": "/categories",
            "reachability": "/reachability - Probe the server root",
            "health": "/health - Health check",
        },
    }


@main_router.get("/health")
async def health_check(manager: Manager, scheduler: Scheduler) -> dict:
    """Health check endpoint"""
    next_run = scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": scheduler.running,
        "coordinator_running": manager.coordinator.running,
        "syncing": {kind.value: manager.coordinator.is_syncing(kind) for kind in SyncKind},
        "next_sync": next_run.isoformat() if next_run else None,
    }


@main_router.post("/credentials", status_code=status.HTTP_201_CREATED, response_model=CredentialResponse)
async def sign_in(request: CredentialRequest, db: DbSession) -> CredentialResponse:
    """Store a server credential; the newest one becomes active"""
    credential = await add_credential(
        db,
        CredentialPayload(
            server_url=request.server_url,
            username=request.username,
            password=request.password,
        ),
    )
    await db.commit()
    return CredentialResponse.model_validate(credential)


@main_router.get("/credentials", response_model=CredentialResponse)
async def show_credential(db: DbSession):
    """Show the active credential without its password"""
    credential = await get_active_credential(db)
    if credential is None:
        return _no_credentials()
    return CredentialResponse.model_validate(credential)


@main_router.delete("/credentials")
async def sign_out(db: DbSession, publisher: Publisher) -> dict:
    """Delete stored credentials and the data cached for them"""
    removed = await remove_credentials(db)
    await db.commit()

    for kind in SyncKind:
        publisher.publish(kind, **_cleared_state_fields())

    return {"status": "ok", "credentials_removed": removed}


def _cleared_state_fields() -> dict:
    return {
        "is_loading": False,
        "last_error": None,
        "error_code": None,
        "count": 0,
        "records": (),
        "last_synced_at": None,
        "response_type": None,
        "response_sample": None,
    }


def _render_result(result: SyncResult) -> JSONResponse | dict:
    if result.status == "success":
        return result.to_dict()
    if result.status == "skipped":
        return error_response(
            status.HTTP_409_CONFLICT,
            result.error_code or "SYNC_SKIPPED",
            result.error or "Sync skipped",
            context=result.to_dict(),
        )
    return error_response(
        status.HTTP_502_BAD_GATEWAY,
        result.error_code or "SYNC_FAILED",
        result.error or "Sync failed",
        context=result.to_dict(),
    )


@main_router.post("/sync")
async def trigger_sync_all(db: DbSession, manager: Manager):
    """
    Refresh categories and channels with the active credential

    Each kind is reported separately; one failing does not stop the other.
    """
    credential = await _active_payload(db)
    if credential is None:
        return _no_credentials()

    logger.info("Manual sync of all kinds triggered via API")
    results = await manager.sync_all(credential)
    succeeded = sum(1 for result in results if result.status == "success")

    if succeeded == len(results):
        overall = "success"
    elif succeeded:
        overall = "partial"
    else:
        overall = "failed"

    return {
        "status": overall,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "results": [result.to_dict() for result in results],
    }


@main_router.post("/sync/{kind}")
async def trigger_sync(kind: SyncKind, db: DbSession, manager: Manager):
    """
    Refresh one kind with the active credential

    This will download, decode and replace the stored set
    """
    credential = await _active_payload(db)
    if credential is None:
        return _no_credentials()

    logger.info("Manual %s sync triggered via API", kind.value)
    result = await manager.sync(kind, credential)
    return _render_result(result)


@main_router.get("/sync/state")
async def sync_state(publisher: Publisher) -> dict:
    """Current loading/error/count state per kind"""
    return {kind.value: state.to_dict() for kind, state in publisher.snapshots().items()}


def _format_event(state: SyncState) -> str:
    return f"event: sync\ndata: {json.dumps(state.to_dict())}\n\n"


@main_router.get("/sync/events")
async def sync_events(request: Request, publisher: Publisher) -> StreamingResponse:
    """Server-sent events stream of sync state changes, starting with current snapshots"""

    async def event_stream() -> AsyncIterator[str]:
        async with publisher.subscription() as queue:
            for state in publisher.snapshots().values():
                yield _format_event(state)

            while not await request.is_disconnected():
                try:
                    state = await asyncio.wait_for(queue.get(), timeout=SSE_KEEPALIVE_SEC)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _format_event(state)

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@main_router.get("/channels", response_model=list[Channel])
async def get_channels(
    db: DbSession,
    category_id: Annotated[str | None, Query(description="Category id ('' for uncategorized)")] = None,
    search: Annotated[str | None, Query(description="Case-insensitive name filter")] = None,
) -> list[Channel]:
    """Stored channels in received order"""
    rows = await list_channels(db, category_id=category_id, search=search)
    return [Channel.model_validate(row) for row in rows]


@main_router.get("/channels/grouped", response_model=GroupedChannelsResponse)
async def get_grouped_channels(
    db: DbSession,
    include_all: Annotated[bool, Query(description="Pin an 'All Channels' group first")] = False,
    resolve_names: Annotated[bool, Query(description="Label groups with category names")] = False,
) -> GroupedChannelsResponse:
    """Stored channels grouped by category label"""
    rows = await list_channels(db)

    category_names = None
    if resolve_names:
        category_names = {
            category.category_id: category.category_name
            for category in await list_categories(db)
        }

    grouping = group_channels_by_category(
        rows,
        include_all=include_all,
        category_names=category_names,
    )

    return GroupedChannelsResponse(
        total_channels=len(rows),
        labels=grouping.labels,
        groups=[
            ChannelGroup(
                label=label,
                channels=[Channel.model_validate(row) for row in grouping.channels_by_label[label]],
            )
            for label in grouping.labels
        ],
    )


@main_router.get("/channels/{stream_id}/stream-url", response_model=StreamUrlResponse)
async def get_stream_url(stream_id: int, db: DbSession, manager: Manager):
    """Playback URL for a stored channel"""
    credential = await _active_payload(db)
    if credential is None:
        return _no_credentials()

    channel = await get_channel_by_stream_id(db, stream_id)
    if channel is None:
        return error_response(
            status.HTTP_404_NOT_FOUND,
            "CHANNEL_NOT_FOUND",
            f"No channel with stream id {stream_id}",
        )

    client = manager.client_for(credential)
    try:
        url = client.build_stream_url(channel.stream_id)
    except InvalidURLError as exc:
        logger.error("Cannot build stream URL: %s", exc.message)
        return error_response(status.HTTP_400_BAD_REQUEST, exc.code, "Invalid base URL")

    return StreamUrlResponse(stream_id=channel.stream_id, name=channel.name, url=url)


@main_router.get("/categories", response_model=list[Category])
async def get_categories(db: DbSession) -> list[Category]:
    """Stored categories in received order"""
    rows = await list_categories(db)
    return [Category.model_validate(row) for row in rows]


@main_router.get("/reachability", response_model=ReachabilityResponse)
async def check_reachability(db: DbSession, manager: Manager):
    """Probe the active server's root URL"""
    credential = await _active_payload(db)
    if credential is None:
        return _no_credentials()

    result = await manager.client_for(credential).check_reachability()
    return ReachabilityResponse(reachable=result.reachable, detail=result.detail)
