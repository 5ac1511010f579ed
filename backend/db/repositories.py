import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import BlockedContent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Blocked content CRUD
# ---------------------------------------------------------------------------

async def create_blocked_content(
    db: AsyncSession,
    text: str,
    url: str,
    created_at: datetime | None = None,
) -> BlockedContent:
    """Insert one audit row for a suppressed content unit."""
    row = BlockedContent(id=uuid.uuid4(), text=text, url=url)
    if created_at is not None:
        row.created_at = created_at
    db.add(row)
    await db.flush()
    return row


async def list_blocked_content(
    db: AsyncSession,
    limit: int | None = None,
    newest_first: bool = False,
) -> list[BlockedContent]:
    """List audit rows ordered by creation time."""
    order = BlockedContent.created_at.desc() if newest_first else BlockedContent.created_at.asc()
    stmt = select(BlockedContent).order_by(order)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def trim_blocked_content(db: AsyncSession, keep: int) -> int:
    """Delete all but the *keep* newest rows.  Returns the number deleted."""
    newest = (
        select(BlockedContent.id)
        .order_by(BlockedContent.created_at.desc())
        .limit(keep)
    )
    result = await db.execute(
        delete(BlockedContent).where(BlockedContent.id.not_in(newest))
    )
    await db.flush()
    if result.rowcount:
        logger.info("Trimmed %d old audit rows", result.rowcount)
    return result.rowcount or 0


async def count_blocked_content(db: AsyncSession) -> int:
    """Number of audit rows."""
    result = await db.execute(select(func.count()).select_from(BlockedContent))
    return result.scalar_one()


async def delete_blocked_content(db: AsyncSession) -> None:
    """Delete every audit row."""
    await db.execute(delete(BlockedContent))
    await db.flush()
