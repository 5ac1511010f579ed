from __future__ import annotations

import logging
from typing import Callable

from bs4 import Tag

from hateblock.audit import AuditEntry, AuditLog, utcnow
from hateblock.dom import LABEL_ATTR, LiveDocument

logger = logging.getLogger(__name__)

MARKER_CLASS = "hateblock-blurred"
LABEL_CLASS = "hateblock-label"
DEFAULT_LABEL_TEXT = "[Blocked by HateBlock]"


def _classes(element: Tag) -> list[str]:
    value = element.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def is_suppressed(element: Tag) -> bool:
    return MARKER_CLASS in _classes(element)


class ContentSuppressor:
    """Hides a container element and records an audit entry for it."""

    def __init__(
        self,
        document: LiveDocument,
        audit_log: AuditLog,
        label_text: str = DEFAULT_LABEL_TEXT,
        clock: Callable[[], object] = utcnow,
    ) -> None:
        self.document = document
        self.audit_log = audit_log
        self.label_text = label_text
        self._clock = clock

    async def suppress(self, element: Tag | None, text: str) -> bool:
        """Mark *element* as blocked and log *text*.

        Returns ``True`` if the marker was newly applied.  A second call on
        the same element leaves the page unchanged but is still logged.
        """
        if element is None:
            logger.debug("No container to suppress; skipping")
            return False

        applied = self._mark(element)
        logger.info("Blocked content on %s: %.60r", self.document.url, text)

        entry = AuditEntry(text=text, url=self.document.url, timestamp=self._clock())
        try:
            await self.audit_log.append(entry)
        except Exception:
            logger.exception("Failed to record blocked content for %s", self.document.url)
        return applied

    def _mark(self, element: Tag) -> bool:
        if is_suppressed(element):
            return False
        element["class"] = _classes(element) + [MARKER_CLASS]

        if element.parent is not None:
            label = self.document.new_tag(
                "span",
                text=f" {self.label_text}",
                **{"class": LABEL_CLASS, LABEL_ATTR: ""},
            )
            self.document.insert_after(element, label)
        return True
