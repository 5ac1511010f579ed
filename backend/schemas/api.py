from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# --- Settings Schemas ---

class SettingsResponse(BaseModel):
    enabled: bool
    threshold: float


class SettingsUpdate(BaseModel):
    enabled: bool | None = None
    threshold: float | None = Field(None, ge=0.0, le=1.0)


# --- Audit Log Schemas ---

class AuditEntryResponse(BaseModel):
    text: str
    url: str
    timestamp: datetime
    summary: str


class AuditLogResponse(BaseModel):
    entries: list[AuditEntryResponse]
    total: int


# --- Scan Schemas ---

class ScanRequest(BaseModel):
    html: str = Field(..., min_length=1, max_length=5_000_000)
    url: str = Field("about:blank", max_length=2048)


class ScanResponse(BaseModel):
    html: str
    enabled: bool
    scanned: int = 0
    suppressed: int = 0
    undecided: int = 0
