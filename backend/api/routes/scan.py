from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.dependencies import (
    get_audit_log,
    get_classifier,
    get_keyword_filter,
    get_label_text,
    get_settings_store,
)
from hateblock.audit import AuditLog
from hateblock.classifier import ToxicityClassifier
from hateblock.dom import LiveDocument
from hateblock.engine import HateBlockEngine
from hateblock.lexicon import KeywordFilter
from hateblock.settings_store import SettingsStore
from schemas.api import ScanRequest, ScanResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ScanResponse)
async def scan_page(
    body: ScanRequest,
    store: SettingsStore = Depends(get_settings_store),
    audit_log: AuditLog = Depends(get_audit_log),
    classifier: ToxicityClassifier | None = Depends(get_classifier),
    keyword_filter: KeywordFilter = Depends(get_keyword_filter),
    label_text: str = Depends(get_label_text),
):
    """Run one full pass over a page and return it with toxic content hidden."""
    document = LiveDocument(body.html, url=body.url)
    engine = HateBlockEngine(
        document,
        store,
        classifier=classifier,
        audit_log=audit_log,
        keyword_filter=keyword_filter,
        label_text=label_text,
    )
    await engine.start()
    await engine.stop()

    logger.info(
        "Scanned %s: %d units, %d suppressed",
        body.url,
        engine.stats.scanned,
        engine.stats.suppressed,
    )
    return ScanResponse(
        html=document.serialize(),
        enabled=store.enabled,
        scanned=engine.stats.scanned,
        suppressed=engine.stats.suppressed,
        undecided=engine.stats.undecided,
    )
