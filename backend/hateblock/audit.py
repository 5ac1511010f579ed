from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_SUMMARY_CHARS = 100


@dataclass(frozen=True)
class AuditEntry:
    """One suppression decision: what was hidden, where, and when."""

    text: str
    url: str
    timestamp: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def summarize_entry(entry: AuditEntry) -> str:
    """Short display form: ``host: text...``."""
    host = urlparse(entry.url).hostname or entry.url
    host = host.replace("www.", "", 1)
    text = entry.text
    if len(text) > _SUMMARY_CHARS:
        text = text[:_SUMMARY_CHARS] + "..."
    return f"{host}: {text}"


def format_report(entries: Iterable[AuditEntry]) -> str:
    """Plain-text report, one line per blocked item."""
    return "\n".join(
        f'- [{entry.timestamp.isoformat()}] {entry.url} : "{entry.text}"'
        for entry in entries
    )


# ---------------------------------------------------------------------------
# Storage port
# ---------------------------------------------------------------------------


class AuditLog(ABC):
    """Append-only store of ``AuditEntry`` records."""

    @abstractmethod
    async def append(self, entry: AuditEntry) -> None:
        ...

    @abstractmethod
    async def entries(self) -> list[AuditEntry]:
        """All entries, oldest first."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    async def recent(self, limit: int = 10) -> list[AuditEntry]:
        """The *limit* newest entries, newest first."""
        entries = await self.entries()
        return list(reversed(entries[-limit:])) if limit > 0 else []

    async def count(self) -> int:
        return len(await self.entries())


class InMemoryAuditLog(AuditLog):
    """Process-local log with read-modify-write appends.

    *max_entries* of 0 keeps everything; otherwise the oldest entries are
    dropped once the cap is exceeded.
    """

    def __init__(self, max_entries: int = 0) -> None:
        self.max_entries = max_entries
        self._logs: list[AuditEntry] = []

    async def append(self, entry: AuditEntry) -> None:
        logs = list(self._logs)
        logs.append(entry)
        if self.max_entries > 0 and len(logs) > self.max_entries:
            logs = logs[-self.max_entries:]
        self._logs = logs

    async def entries(self) -> list[AuditEntry]:
        return list(self._logs)

    async def count(self) -> int:
        return len(self._logs)

    async def clear(self) -> None:
        self._logs = []
