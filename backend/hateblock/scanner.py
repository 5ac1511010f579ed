from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import NavigableString, PageElement, Tag

from hateblock.container import resolve_container
from hateblock.dom import LiveDocument, element_text, is_excluded, iter_text_nodes

logger = logging.getLogger(__name__)


@dataclass
class ContentUnit:
    """A text to judge and the element that would be hidden for it."""

    text: str
    container: Tag | None
    node: NavigableString


class DocumentScanner:
    """Walks a document (or a subtree) and groups its text into content units."""

    def __init__(self, document: LiveDocument) -> None:
        self.document = document

    def scan(self, root: PageElement | None = None) -> list[ContentUnit]:
        """Collect one ``ContentUnit`` per container under *root*.

        Text nodes whose container was already taken in this pass are
        skipped, so a multi-paragraph comment is judged once as a whole.
        """
        if root is None:
            root = self.document.body
        body = self.document.body

        processed: set[int] = set()
        units: list[ContentUnit] = []
        for node in iter_text_nodes(root):
            text = str(node)
            if not text.strip():
                continue
            container = resolve_container(node, body)
            if container is None:
                units.append(ContentUnit(text=text, container=None, node=node))
                continue
            if id(container) in processed:
                continue
            processed.add(id(container))
            units.append(
                ContentUnit(text=element_text(container), container=container, node=node)
            )

        logger.debug("Scan of <%s> found %d content units", getattr(root, "name", "text"), len(units))
        return units

    def content_unit(self, node: NavigableString) -> ContentUnit | None:
        """Single-node unit: the node's own text plus its resolved container."""
        if is_excluded(node):
            return None
        text = str(node)
        if not text.strip():
            return None
        container = resolve_container(node, self.document.body)
        return ContentUnit(text=text, container=container, node=node)
