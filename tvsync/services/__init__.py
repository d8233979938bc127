"""
Services package for the TV Sync Service

This package contains all business logic and service layer components.
"""
from tvsync.services.decoder import decode_records
from tvsync.services.sync_service import SyncManager
from tvsync.services.sync_coordinator import SyncCoordinator
from tvsync.services.sync_state import SyncStatePublisher
from tvsync.services.sync_types import SyncKind
from tvsync.services.xtream_client import XtreamClient

__all__ = [
    'decode_records',
    'SyncManager',
    'SyncCoordinator',
    'SyncStatePublisher',
    'SyncKind',
    'XtreamClient',
]
