"""
Credential Service

Sign-in and sign-out operations on the stored server credential.
"""
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tvsync.models import Credential
from tvsync.services.db_service import delete_all_records
from tvsync.services.sync_types import CredentialPayload


logger = logging.getLogger(__name__)


def to_payload(credential: Credential) -> CredentialPayload:
    return CredentialPayload(
        server_url=credential.server_url,
        username=credential.username,
        password=credential.password,
    )


async def add_credential(db: AsyncSession, payload: CredentialPayload) -> Credential:
    """
    Store a new credential.

    Re-signing in adds another row; the most recent one is the active credential.
    """
    credential = Credential(
        server_url=payload.server_url.strip(),
        username=payload.username,
        password=payload.password,
    )
    db.add(credential)
    await db.flush()
    logger.info("Stored credential for user %s on %s", credential.username, credential.server_url)
    return credential


async def get_active_credential(db: AsyncSession) -> Credential | None:
    """Return the most recently created credential, if any."""
    result = await db.execute(
        select(Credential).order_by(Credential.created_at.desc(), Credential.id.desc()).limit(1)
    )
    return result.scalar_one_or_none()


async def remove_credentials(db: AsyncSession) -> int:
    """
    Sign out: delete all credentials and the data cached for them.

    Returns:
        Number of credentials removed
    """
    result = await db.execute(select(Credential.id))
    removed = len(result.scalars().all())

    await db.execute(delete(Credential))
    await delete_all_records(db)

    logger.info("Removed %s credential(s) and cleared cached data", removed)
    return removed
