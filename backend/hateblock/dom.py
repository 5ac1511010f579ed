"""Live document tree backed by BeautifulSoup.

A ``LiveDocument`` wraps a parsed page and plays the role of the browser
DOM: the host page mutates it through the methods below, and every
mutation is reported to observers as a ``MutationRecord``.  Records are
queued per observer and delivered as one batch per event-loop turn, the
same way a ``MutationObserver`` receives its callbacks.

Node identity is object identity.  bs4 tags compare equal when they are
structurally equal and ``NavigableString`` is a ``str``, so bookkeeping
must always use ``is`` / ``id()``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

logger = logging.getLogger(__name__)

CHILD_LIST = "child_list"
CHARACTER_DATA = "character_data"

# Attribute carried by suppression labels; their text is never scanned.
LABEL_ATTR = "data-hateblock-label"

# Elements whose strings are not rendered text.
_NON_RENDERED = frozenset({"script", "style", "noscript", "template"})


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------


def is_text_node(node: object) -> bool:
    """True for plain text strings (not comments, doctype, CDATA, ...)."""
    return type(node) is NavigableString


def parent_element(node: PageElement) -> Tag | None:
    """Return the parent *element* of *node*.

    The ``BeautifulSoup`` object itself is the document, not an element,
    so a node sitting directly under it has no parent element.
    """
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def is_excluded(node: PageElement) -> bool:
    """True if *node* sits inside a non-rendered element or a suppression label."""
    for ancestor in node.parents:
        if ancestor.name in _NON_RENDERED:
            return True
        if isinstance(ancestor, Tag) and ancestor.has_attr(LABEL_ATTR):
            return True
    return False


def iter_text_nodes(root: PageElement) -> Iterator[NavigableString]:
    """Yield the rendered text nodes under *root* in document order."""
    if is_text_node(root):
        if not is_excluded(root):
            yield root
        return
    if not isinstance(root, Tag):
        return
    if root.name in _NON_RENDERED or root.has_attr(LABEL_ATTR):
        return
    for node in root.descendants:
        if is_text_node(node) and not is_excluded(node):
            yield node


def text_length(element: Tag) -> int:
    """Length of the element's raw text content."""
    return sum(len(node) for node in element.descendants if is_text_node(node))


def element_text(element: PageElement) -> str:
    """Rendered text of *element*: stripped text nodes joined by single spaces."""
    parts = [str(node).strip() for node in iter_text_nodes(element)]
    return " ".join(part for part in parts if part)


# ---------------------------------------------------------------------------
# Mutation records and observers
# ---------------------------------------------------------------------------


@dataclass
class MutationRecord:
    """A single change to the document tree."""

    type: str  # CHILD_LIST or CHARACTER_DATA
    target: PageElement
    added_nodes: list[PageElement] = field(default_factory=list)
    removed_nodes: list[PageElement] = field(default_factory=list)
    old_value: str | None = None


class Observer:
    """Subscription handle returned by ``LiveDocument.observe``."""

    def __init__(
        self,
        document: "LiveDocument",
        callback: Callable[[list[MutationRecord]], None],
    ) -> None:
        self._document = document
        self._callback = callback
        self._records: list[MutationRecord] = []
        self.connected = True

    def take_records(self) -> list[MutationRecord]:
        """Return and clear the records queued for this observer."""
        records, self._records = self._records, []
        return records

    def disconnect(self) -> None:
        """Stop receiving records; anything still queued is discarded."""
        if not self.connected:
            return
        self.connected = False
        self._records = []
        self._document._detach(self)

    @property
    def has_pending(self) -> bool:
        return bool(self._records)

    def _enqueue(self, record: MutationRecord) -> None:
        self._records.append(record)

    def _deliver(self) -> None:
        records = self.take_records()
        if not records or not self.connected:
            return
        try:
            self._callback(records)
        except Exception:
            logger.exception("Mutation observer callback failed")


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class LiveDocument:
    """A mutable, observable page."""

    def __init__(self, html: str, url: str = "about:blank", parser: str = "lxml") -> None:
        self.url = url
        self.soup = BeautifulSoup(html or "", parser)
        self._observers: list[Observer] = []
        self._delivery_scheduled = False
        self._ensure_body()

    def _ensure_body(self) -> None:
        if self.soup.body is not None:
            return
        html = self.soup.html
        if html is None:
            html = self.soup.new_tag("html")
            self.soup.append(html)
        html.append(self.soup.new_tag("body"))

    @property
    def body(self) -> Tag:
        return self.soup.body

    def serialize(self) -> str:
        return str(self.soup)

    # -- node construction ---------------------------------------------------

    def new_tag(self, name: str, text: str | None = None, **attrs: str) -> Tag:
        tag = self.soup.new_tag(name, attrs=attrs)
        if text is not None:
            tag.string = text
        return tag

    @staticmethod
    def parse_fragment(markup: str) -> list[PageElement]:
        fragment = BeautifulSoup(markup, "html.parser")
        return list(fragment.contents)

    # -- mutations -----------------------------------------------------------

    def append_html(self, parent: Tag, markup: str) -> list[PageElement]:
        """Parse *markup* and append the resulting nodes to *parent*."""
        nodes = self.parse_fragment(markup)
        for node in nodes:
            parent.append(node)
        self._record(MutationRecord(CHILD_LIST, parent, added_nodes=nodes))
        return nodes

    def append_node(self, parent: Tag, node: PageElement) -> PageElement:
        parent.append(node)
        self._record(MutationRecord(CHILD_LIST, parent, added_nodes=[node]))
        return node

    def insert_after(self, reference: PageElement, node: PageElement) -> PageElement:
        reference.insert_after(node)
        self._record(MutationRecord(CHILD_LIST, reference.parent, added_nodes=[node]))
        return node

    def set_text(self, text_node: NavigableString, value: str) -> NavigableString:
        """Replace the content of a text node.

        ``NavigableString`` is immutable, so the node is swapped for a new
        one; the record's ``target`` is the node now in the tree.
        """
        old_value = str(text_node)
        replacement = NavigableString(value)
        text_node.replace_with(replacement)
        self._record(
            MutationRecord(CHARACTER_DATA, replacement, old_value=old_value)
        )
        return replacement

    def remove(self, node: PageElement) -> None:
        parent = node.parent
        node.extract()
        self._record(MutationRecord(CHILD_LIST, parent, removed_nodes=[node]))

    # -- observation ---------------------------------------------------------

    def observe(self, callback: Callable[[list[MutationRecord]], None]) -> Observer:
        observer = Observer(self, callback)
        self._observers.append(observer)
        return observer

    def has_pending_records(self) -> bool:
        return any(observer.has_pending for observer in self._observers)

    def deliver(self) -> None:
        """Deliver queued records to every connected observer."""
        self._delivery_scheduled = False
        for observer in list(self._observers):
            observer._deliver()

    def _detach(self, observer: Observer) -> None:
        self._observers = [o for o in self._observers if o is not observer]

    def _record(self, record: MutationRecord) -> None:
        if not self._observers:
            return
        for observer in self._observers:
            observer._enqueue(record)
        self._schedule_delivery()

    def _schedule_delivery(self) -> None:
        if self._delivery_scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: records wait for an explicit deliver().
            return
        self._delivery_scheduled = True
        loop.call_soon(self.deliver)
