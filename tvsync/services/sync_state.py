"""
Observable sync state

Holds the latest state of each sync kind as a read-only projection and fans
out every change to subscribers, independent of any presentation framework.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from tvsync.services.sync_types import SyncKind


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SyncState:
    """Snapshot of one kind's sync progress and current data."""
    kind: SyncKind
    is_loading: bool = False
    last_error: str | None = None
    error_code: str | None = None
    count: int = 0
    records: tuple[Any, ...] = field(default_factory=tuple)
    last_synced_at: datetime | None = None
    response_type: str | None = None
    response_sample: str | None = None

    def to_dict(self, *, include_records: bool = False) -> dict:
        payload = {
            "kind": self.kind.value,
            "is_loading": self.is_loading,
            "last_error": self.last_error,
            "error_code": self.error_code,
            "count": self.count,
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "response_type": self.response_type,
            "response_sample": self.response_sample,
        }
        if include_records:
            payload["records"] = [record.model_dump() for record in self.records]
        return payload


class SyncStatePublisher:
    """
    Publish-subscribe hub for SyncState changes.

    Each subscriber gets its own bounded queue. When a queue is full the
    oldest pending event is dropped so slow consumers never block a sync.
    """

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._states: dict[SyncKind, SyncState] = {kind: SyncState(kind=kind) for kind in SyncKind}
        self._subscribers: set[asyncio.Queue[SyncState]] = set()

    def snapshot(self, kind: SyncKind) -> SyncState:
        return self._states[kind]

    def snapshots(self) -> dict[SyncKind, SyncState]:
        return dict(self._states)

    def publish(self, kind: SyncKind, **changes: Any) -> SyncState:
        """
        Apply changes to the state of a kind and notify subscribers.

        Args:
            kind: Sync kind whose state changes
            **changes: SyncState fields to replace

        Returns:
            The new state
        """
        state = replace(self._states[kind], **changes)
        self._states[kind] = state
        logger.debug(
            "Published %s state: loading=%s count=%s error=%s",
            kind.value,
            state.is_loading,
            state.count,
            state.error_code,
        )

        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(state)
        return state

    def subscribe(self) -> asyncio.Queue[SyncState]:
        queue: asyncio.Queue[SyncState] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SyncState]) -> None:
        self._subscribers.discard(queue)

    @asynccontextmanager
    async def subscription(self) -> AsyncIterator[asyncio.Queue[SyncState]]:
        """Subscribe for the duration of the context."""
        queue = self.subscribe()
        try:
            yield queue
        finally:
            self.unsubscribe(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


# Global singleton instance
_publisher: SyncStatePublisher | None = None


def get_state_publisher() -> SyncStatePublisher:
    """
    Get or create the global state publisher singleton.

    Returns:
        The global SyncStatePublisher instance
    """
    global _publisher
    if _publisher is None:
        _publisher = SyncStatePublisher()
    return _publisher


def reset_state_publisher() -> None:
    """
    Reset the state publisher (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _publisher
    _publisher = None
