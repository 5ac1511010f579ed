from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from api.dependencies import get_audit_log
from hateblock.audit import AuditLog, format_report, summarize_entry
from schemas.api import AuditEntryResponse, AuditLogResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=AuditLogResponse)
async def list_blocked_content(
    limit: int = Query(10, ge=1, le=1000),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """Return the most recently blocked items, newest first."""
    entries = await audit_log.recent(limit)
    total = await audit_log.count()
    return AuditLogResponse(
        entries=[
            AuditEntryResponse(
                text=entry.text,
                url=entry.url,
                timestamp=entry.timestamp,
                summary=summarize_entry(entry),
            )
            for entry in entries
        ],
        total=total,
    )


@router.get("/report")
async def export_report(
    audit_log: AuditLog = Depends(get_audit_log),
):
    """Export every blocked item as a downloadable plain-text report."""
    entries = await audit_log.entries()
    report = format_report(entries)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    filename = f"hateblock_report_{stamp}.txt"

    return StreamingResponse(
        iter([report]),
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/")
async def clear_blocked_content(
    audit_log: AuditLog = Depends(get_audit_log),
):
    """Delete every audit entry."""
    await audit_log.clear()
    return {"cleared": True}
