from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db import repositories
from db.database import async_session
from hateblock.audit import AuditEntry, AuditLog

logger = logging.getLogger(__name__)


class DatabaseAuditLog(AuditLog):
    """Audit log persisted in the ``blocked_content`` table.

    Each call opens its own session, so appends from concurrent page
    scans never share a transaction.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        max_entries: int = 0,
    ) -> None:
        self._session_factory = session_factory
        self.max_entries = max_entries

    async def append(self, entry: AuditEntry) -> None:
        async with self._session_factory() as db:
            await repositories.create_blocked_content(
                db, text=entry.text, url=entry.url, created_at=entry.timestamp
            )
            if self.max_entries > 0:
                await repositories.trim_blocked_content(db, self.max_entries)
            await db.commit()

    async def entries(self) -> list[AuditEntry]:
        async with self._session_factory() as db:
            rows = await repositories.list_blocked_content(db)
        return [AuditEntry(text=r.text, url=r.url, timestamp=r.created_at) for r in rows]

    async def recent(self, limit: int = 10) -> list[AuditEntry]:
        if limit <= 0:
            return []
        async with self._session_factory() as db:
            rows = await repositories.list_blocked_content(db, limit=limit, newest_first=True)
        return [AuditEntry(text=r.text, url=r.url, timestamp=r.created_at) for r in rows]

    async def count(self) -> int:
        async with self._session_factory() as db:
            return await repositories.count_blocked_content(db)

    async def clear(self) -> None:
        async with self._session_factory() as db:
            await repositories.delete_blocked_content(db)
            await db.commit()
        logger.info("Audit log cleared")
