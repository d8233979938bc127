"""
Sync Service

Orchestrates fetch -> decode -> replace -> publish for channels and
categories. Records are decoded into memory before the store is touched, and
the delete + insert runs in a single transaction, so a failed sync leaves the
previously stored set intact.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
from sqlalchemy.exc import SQLAlchemyError

from tvsync.database import session_scope
from tvsync.services.credential_service import get_active_credential, to_payload
from tvsync.services.db_service import replace_records
from tvsync.services.decoder import RECORD_MODELS, decode_records, describe_response
from tvsync.services.errors import StorageError, SyncError, UnexpectedError
from tvsync.services.sync_coordinator import SyncCoordinator
from tvsync.services.sync_state import SyncStatePublisher
from tvsync.services.sync_types import CredentialPayload, ResponseDescription, SyncKind, SyncResult
from tvsync.services.xtream_client import XtreamClient


logger = logging.getLogger(__name__)

# Categories first so channel grouping can resolve names as soon as channels land
SYNC_ORDER = (SyncKind.CATEGORIES, SyncKind.CHANNELS)


class SyncManager:
    """Runs syncs through a coordinator and publishes their progress."""

    def __init__(
        self,
        coordinator: SyncCoordinator,
        publisher: SyncStatePublisher,
        *,
        timeout: float | None = None,
        response_sample_chars: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.publisher = publisher
        self._timeout = timeout
        self._response_sample_chars = response_sample_chars
        self._transport = transport

    def client_for(self, credential: CredentialPayload) -> XtreamClient:
        return XtreamClient(credential, timeout=self._timeout, transport=self._transport)

    async def sync(self, kind: SyncKind, credential: CredentialPayload) -> SyncResult:
        """
        Refresh the stored set of one kind from the server.

        Overlapping calls for the same kind are rejected with a skipped result.

        Args:
            kind: Record kind to refresh
            credential: Server credential

        Returns:
            SyncResult describing the outcome; errors never propagate
        """
        return await self.coordinator.execute(kind, lambda: self._run(kind, credential))

    async def sync_all(self, credential: CredentialPayload) -> list[SyncResult]:
        """Sync every kind sequentially."""
        return [await self.sync(kind, credential) for kind in SYNC_ORDER]

    async def sync_active(self) -> list[SyncResult]:
        """Sync every kind using the stored active credential."""
        async with session_scope() as session:
            credential = await get_active_credential(session)
            payload = to_payload(credential) if credential else None

        if payload is None:
            logger.warning("No credentials stored - sync aborted")
            now = datetime.now(timezone.utc)
            return [
                SyncResult(
                    kind=kind,
                    status="failed",
                    started_at=now,
                    completed_at=now,
                    error="No credentials stored",
                    error_code="NO_CREDENTIALS",
                )
                for kind in SYNC_ORDER
            ]

        return await self.sync_all(payload)

    async def _run(self, kind: SyncKind, credential: CredentialPayload) -> SyncResult:
        started_at = datetime.now(timezone.utc)
        logger.info("%s sync started for user %s", kind.value, credential.username)
        self.publisher.publish(kind, is_loading=True, last_error=None, error_code=None)

        client = self.client_for(credential)
        description = None
        try:
            body = await client.fetch_action(kind.action)
            description = describe_response(body, self._response_sample_chars)
            logger.info("Response shape: %s", description.response_type)

            records = decode_records(body, RECORD_MODELS[kind])

            try:
                async with session_scope() as session:
                    count = await replace_records(session, kind, records)
            except SQLAlchemyError as exc:
                logger.error("Failed to store %s: %s", kind.value, exc, exc_info=True)
                raise StorageError(f"Failed to store {kind.value}: {exc}") from exc

        except SyncError as exc:
            return self._fail(kind, exc, started_at, description)
        except Exception as exc:
            logger.error("Unexpected error during %s sync: %s", kind.value, exc, exc_info=True)
            error = UnexpectedError(f"Unexpected error: {str(exc) or type(exc).__name__}")
            return self._fail(kind, error, started_at, description)

        completed_at = datetime.now(timezone.utc)
        self.publisher.publish(
            kind,
            is_loading=False,
            last_error=None,
            error_code=None,
            count=count,
            records=tuple(records),
            last_synced_at=completed_at,
            response_type=description.response_type,
            response_sample=description.sample,
        )
        logger.info("%s sync completed: %s records", kind.value, count)

        return SyncResult(
            kind=kind,
            status="success",
            started_at=started_at,
            completed_at=completed_at,
            count=count,
        )

    def _fail(
        self,
        kind: SyncKind,
        exc: SyncError,
        started_at: datetime,
        description: ResponseDescription | None,
    ) -> SyncResult:
        completed_at = datetime.now(timezone.utc)
        logger.error("%s sync failed [%s]: %s", kind.value, exc.code, exc.message)
        self.publisher.publish(
            kind,
            is_loading=False,
            last_error=exc.message,
            error_code=exc.code,
            response_type=description.response_type if description else None,
            response_sample=description.sample if description else None,
        )
        return SyncResult(
            kind=kind,
            status="failed",
            started_at=started_at,
            completed_at=completed_at,
            error=exc.message,
            error_code=exc.code,
        )
