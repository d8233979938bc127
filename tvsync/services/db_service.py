"""
Database operations for synchronised records

This module contains the CRUD operations for channels and categories. Replace
operations do not commit: callers run them inside one transaction so the
delete and the insert land together or not at all.
"""
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from tvsync.models import Category, Channel
from tvsync.services.decoder import CategoryRecord, ChannelRecord
from tvsync.services.sync_types import SyncKind


logger = logging.getLogger(__name__)

_MODELS: dict[SyncKind, type[Channel] | type[Category]] = {
    SyncKind.CHANNELS: Channel,
    SyncKind.CATEGORIES: Category,
}

_INSERT_CHUNK_SIZE = 1000


async def count_records(db: AsyncSession, kind: SyncKind) -> int:
    """Count stored records of a kind."""
    model = _MODELS[kind]
    result = await db.execute(select(func.count(model.id)))
    return result.scalar_one_or_none() or 0


async def replace_records(
    db: AsyncSession,
    kind: SyncKind,
    records: Sequence[ChannelRecord] | Sequence[CategoryRecord],
) -> int:
    """
    Replace every stored record of a kind with the given records.

    Args:
        db: Database session (transaction owned by the caller)
        kind: Record kind to replace
        records: Fully decoded records, in received order

    Returns:
        Number of records inserted
    """
    model = _MODELS[kind]

    deleted_count = await count_records(db, kind)
    await db.execute(delete(model))
    logger.info("Deleted %s existing %s", deleted_count, kind.value)

    if not records:
        logger.info("No %s to store", kind.value)
        return 0

    synced_at = datetime.now(timezone.utc)
    payload = [
        {**record.model_dump(), "synced_at": synced_at}
        for record in records
    ]

    for start_index in range(0, len(payload), _INSERT_CHUNK_SIZE):
        chunk = payload[start_index:start_index + _INSERT_CHUNK_SIZE]
        await db.execute(insert(model), chunk)
        logger.debug(
            "Inserted %s %s %s-%s/%s",
            len(chunk),
            kind.value,
            start_index + 1,
            start_index + len(chunk),
            len(payload),
        )

    logger.info("Stored %s %s", len(payload), kind.value)
    return len(payload)


async def delete_all_records(db: AsyncSession) -> None:
    """Delete every cached channel and category."""
    for kind, model in _MODELS.items():
        await db.execute(delete(model))
        logger.info("Cleared cached %s", kind.value)


def _escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_channels(
    db: AsyncSession,
    *,
    category_id: str | None = None,
    search: str | None = None,
) -> list[Channel]:
    """
    List stored channels in received order.

    Args:
        db: Database session
        category_id: Only channels of this category ('' selects uncategorized)
        search: Case-insensitive substring match on the channel name

    Returns:
        List of channel rows
    """
    stmt = select(Channel).order_by(Channel.id)
    if category_id is not None:
        stmt = stmt.where(Channel.category_id == category_id)
    if search:
        stmt = stmt.where(Channel.name.ilike(f"%{_escape_like(search)}%", escape="\\"))

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_categories(db: AsyncSession) -> list[Category]:
    """List stored categories in received order."""
    result = await db.execute(select(Category).order_by(Category.id))
    return list(result.scalars().all())


async def get_channel_by_stream_id(db: AsyncSession, stream_id: int) -> Channel | None:
    """Return the first stored channel with the given stream id."""
    result = await db.execute(
        select(Channel).where(Channel.stream_id == stream_id).order_by(Channel.id).limit(1)
    )
    return result.scalar_one_or_none()
