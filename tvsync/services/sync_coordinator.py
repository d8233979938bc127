"""
Sync Coordination

Single-flight protection for sync operations, keyed by record kind, with an
explicit start/stop lifecycle owned by the application.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from tvsync.services.sync_types import SyncKind, SyncResult


logger = logging.getLogger(__name__)


class SyncCoordinator:
    """
    Coordinates sync operations to prevent concurrent runs of the same kind.

    Uses one asyncio.Lock per SyncKind: an overlapping request for a kind that
    is already syncing is rejected with a skipped result instead of queuing.
    Different kinds may sync concurrently.
    """

    def __init__(self):
        """Initialize the coordinator with one lock per kind, stopped."""
        self._locks = {kind: asyncio.Lock() for kind in SyncKind}
        self._running = False

    def start(self) -> None:
        self._running = True
        logger.info("Sync coordinator started")

    def stop(self) -> None:
        self._running = False
        logger.info("Sync coordinator stopped")

    @property
    def running(self) -> bool:
        return self._running

    async def execute(
        self,
        kind: SyncKind,
        sync_func: Callable[[], Awaitable[SyncResult]],
    ) -> SyncResult:
        """
        Execute a sync operation with concurrency protection.

        Args:
            kind: Record kind being synchronised
            sync_func: Async function performing the sync

        Returns:
            Result from sync_func, or a skipped result if the coordinator is
            stopped or a sync of the same kind is already running
        """
        if not self._running:
            logger.warning("Sync coordinator is stopped, skipping %s sync", kind.value)
            return SyncResult.skipped(
                kind,
                "Sync coordinator is not running",
                error_code="COORDINATOR_STOPPED",
            )

        # Try to acquire lock without blocking
        lock = self._locks[kind]
        if lock.locked():
            logger.warning("%s sync already in progress, skipping this request", kind.value)
            return SyncResult.skipped(kind, f"{kind.value} sync already in progress")

        async with lock:
            return await sync_func()

    def is_syncing(self, kind: SyncKind) -> bool:
        """
        Check if a sync of the given kind is currently in progress.

        Returns:
            True if a sync is running, False otherwise
        """
        return self._locks[kind].locked()


# Global singleton instance
_coordinator: SyncCoordinator | None = None


def get_sync_coordinator() -> SyncCoordinator:
    """
    Get or create the global sync coordinator singleton.

    Returns:
        The global SyncCoordinator instance
    """
    global _coordinator
    if _coordinator is None:
        _coordinator = SyncCoordinator()
    return _coordinator


def reset_sync_coordinator() -> None:
    """
    Reset the sync coordinator (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _coordinator
    _coordinator = None
