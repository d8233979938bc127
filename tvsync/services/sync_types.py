"""
Shared dataclasses used across the sync pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Literal


class SyncKind(str, Enum):
    """Record kinds that are synchronised independently."""
    CHANNELS = "channels"
    CATEGORIES = "categories"

    @property
    def action(self) -> str:
        """player_api.php action serving this kind."""
        if self is SyncKind.CHANNELS:
            return "get_live_streams"
        return "get_live_categories"


@dataclass(slots=True, frozen=True)
class CredentialPayload:
    """In-memory representation of a server credential."""
    server_url: str
    username: str
    password: str


@dataclass(slots=True, frozen=True)
class ReachabilityResult:
    """Outcome of a reachability probe against the server root."""
    reachable: bool
    detail: str | None = None

    def to_dict(self) -> dict:
        return {"reachable": self.reachable, "detail": self.detail}


@dataclass(slots=True, frozen=True)
class ResponseDescription:
    """Shape and truncated sample of a raw server response, for diagnostics."""
    response_type: str
    sample: str


@dataclass(slots=True)
class SyncResult:
    kind: SyncKind
    status: Literal["success", "failed", "skipped"]
    started_at: datetime
    completed_at: datetime
    count: int = 0
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def skipped(
        cls,
        kind: SyncKind,
        message: str,
        error_code: str = "SYNC_IN_PROGRESS",
    ) -> SyncResult:
        now = datetime.now(timezone.utc)
        return cls(
            kind=kind,
            status="skipped",
            started_at=now,
            completed_at=now,
            error=message,
            error_code=error_code,
        )

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.completed_at - self.started_at).total_seconds())

    def to_dict(self) -> dict:
        payload = {
            "kind": self.kind.value,
            "status": self.status,
            "count": self.count,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": self.duration_seconds,
        }
        if self.error:
            payload["error"] = self.error
            payload["error_code"] = self.error_code
        return payload


__all__ = [
    "SyncKind",
    "CredentialPayload",
    "ReachabilityResult",
    "ResponseDescription",
    "SyncResult",
]
