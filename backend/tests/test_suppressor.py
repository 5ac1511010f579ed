"""Tests for hateblock.suppressor: marking containers and recording them."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from hateblock.audit import InMemoryAuditLog
from hateblock.dom import LABEL_ATTR, LiveDocument
from hateblock.suppressor import LABEL_CLASS, MARKER_CLASS, ContentSuppressor, is_suppressed

FIXED_TIME = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def suppressor(document: LiveDocument, audit_log: InMemoryAuditLog) -> ContentSuppressor:
    return ContentSuppressor(document, audit_log, clock=lambda: FIXED_TIME)


def _labels(document: LiveDocument) -> list:
    return document.body.find_all("span", class_=LABEL_CLASS)


class TestSuppress:
    """Marker, trailing label, audit entry."""

    @pytest.mark.asyncio
    async def test_marks_and_labels(self, suppressor, document: LiveDocument):
        container = document.body.find(id="c2")
        assert await suppressor.suppress(container, "You are an idiot") is True

        assert is_suppressed(container)
        assert container["class"] == ["comment", MARKER_CLASS]
        label = container.next_sibling
        assert label.name == "span"
        assert label.has_attr(LABEL_ATTR)
        assert label.get_text() == " [Blocked by HateBlock]"

    @pytest.mark.asyncio
    async def test_records_entry(self, suppressor, document: LiveDocument, audit_log):
        await suppressor.suppress(document.body.find(id="c2"), "You are an idiot")
        (entry,) = await audit_log.entries()
        assert entry.text == "You are an idiot"
        assert entry.url == "https://www.example.com/forum/thread/1"
        assert entry.timestamp == FIXED_TIME

    @pytest.mark.asyncio
    async def test_second_call_adds_no_label(self, suppressor, document: LiveDocument, audit_log):
        container = document.body.find(id="c2")
        await suppressor.suppress(container, "You are an idiot")
        assert await suppressor.suppress(container, "You are an idiot") is False

        assert len(_labels(document)) == 1
        assert container["class"].count(MARKER_CLASS) == 1
        assert len(await audit_log.entries()) == 2

    @pytest.mark.asyncio
    async def test_missing_container_is_noop(self, suppressor, document: LiveDocument, audit_log):
        before = document.serialize()
        assert await suppressor.suppress(None, "orphan text") is False
        assert document.serialize() == before
        assert await audit_log.entries() == []

    @pytest.mark.asyncio
    async def test_custom_label_text(self, document: LiveDocument, audit_log):
        suppressor = ContentSuppressor(document, audit_log, label_text="[hidden]")
        await suppressor.suppress(document.body.find(id="c2"), "x")
        assert _labels(document)[0].get_text() == " [hidden]"

    @pytest.mark.asyncio
    async def test_detached_element_marked_without_label(self, suppressor, audit_log):
        doc = LiveDocument("<div id='x'>text</div>")
        element = doc.body.find(id="x").extract()
        assert await suppressor.suppress(element, "text") is True
        assert is_suppressed(element)
        assert element.next_sibling is None

    @pytest.mark.asyncio
    async def test_audit_failure_keeps_suppression(self, document: LiveDocument):
        failing_log = AsyncMock()
        failing_log.append.side_effect = ConnectionError("database down")
        suppressor = ContentSuppressor(document, failing_log)

        container = document.body.find(id="c2")
        assert await suppressor.suppress(container, "You are an idiot") is True
        assert is_suppressed(container)
        failing_log.append.assert_awaited_once()
