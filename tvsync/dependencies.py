"""
Dependency Injection Configuration

Wires the process-wide sync coordinator, state publisher, sync manager and
scheduler. Route handlers receive them through FastAPI dependencies so tests
can override any of them.
"""
import logging
from typing import Annotated

from fastapi import Depends

from tvsync.config import settings
from tvsync.services.scheduler_service import SyncScheduler
from tvsync.services.sync_coordinator import get_sync_coordinator, reset_sync_coordinator
from tvsync.services.sync_service import SyncManager
from tvsync.services.sync_state import SyncStatePublisher, get_state_publisher, reset_state_publisher


logger = logging.getLogger(__name__)

# Global instances, created on first use
_sync_manager: SyncManager | None = None
_scheduler: SyncScheduler | None = None


def get_sync_manager() -> SyncManager:
    """
    Get the global sync manager, built on the global coordinator and publisher.

    Returns:
        The global SyncManager
    """
    global _sync_manager
    if _sync_manager is None:
        _sync_manager = SyncManager(
            get_sync_coordinator(),
            get_state_publisher(),
            timeout=settings.http_timeout_sec,
            response_sample_chars=settings.response_sample_chars,
        )
        logger.debug("Created global SyncManager")
    return _sync_manager


def get_publisher(manager: Annotated[SyncManager, Depends(get_sync_manager)]) -> SyncStatePublisher:
    """FastAPI dependency returning the publisher of the active sync manager."""
    return manager.publisher


def get_scheduler() -> SyncScheduler:
    """
    Get the global sync scheduler, bound to the global sync manager.

    Returns:
        The global SyncScheduler
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = SyncScheduler(get_sync_manager().sync_active)
    return _scheduler


def reset_dependencies() -> None:
    """
    Reset all process-wide instances (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _sync_manager, _scheduler
    _sync_manager = None
    _scheduler = None
    reset_sync_coordinator()
    reset_state_publisher()
    logger.debug("Dependencies reset")
