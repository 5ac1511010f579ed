from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable

from bs4 import NavigableString, Tag

from hateblock.dom import (
    CHARACTER_DATA,
    CHILD_LIST,
    LiveDocument,
    MutationRecord,
    Observer,
    is_text_node,
)

logger = logging.getLogger(__name__)


class TrackerState(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class MutationTracker:
    """Feeds document changes back into the scan pipeline.

    While active, each delivered batch of mutation records is queued and
    handled by a worker task: added elements are scanned as subtrees,
    added or edited text nodes go through the single-node path.
    Batches are handled one at a time with no coalescing.
    """

    def __init__(
        self,
        document: LiveDocument,
        on_subtree: Callable[[Tag], object],
        on_text: Callable[[NavigableString], object],
    ) -> None:
        self.document = document
        self._on_subtree = on_subtree
        self._on_text = on_text
        self._state = TrackerState.INACTIVE
        self._observer: Observer | None = None
        self._queue: asyncio.Queue[list[MutationRecord]] | None = None
        self._worker: asyncio.Task | None = None

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is TrackerState.ACTIVE

    def start(self) -> None:
        """Subscribe to document changes.  Must be called from a running loop."""
        if self.active:
            return
        self._queue = asyncio.Queue()
        self._observer = self.document.observe(self._enqueue)
        self._worker = asyncio.get_running_loop().create_task(self._run(self._queue))
        self._state = TrackerState.ACTIVE
        logger.debug("Mutation tracking started on %s", self.document.url)

    def stop(self) -> None:
        """Unsubscribe and drop any batches not yet handled."""
        if not self.active:
            return
        self._state = TrackerState.INACTIVE
        if self._observer is not None:
            self._observer.disconnect()
            self._observer = None
        if self._worker is not None:
            self._worker.cancel()
            self._worker = None
        self._queue = None
        logger.debug("Mutation tracking stopped on %s", self.document.url)

    async def join(self) -> None:
        """Wait until every queued batch has been handled."""
        if self._queue is not None:
            await self._queue.join()

    def handle(self, records: list[MutationRecord]) -> None:
        for record in records:
            if record.type == CHILD_LIST:
                for node in record.added_nodes:
                    if is_text_node(node):
                        self._on_text(node)
                    elif isinstance(node, Tag):
                        self._on_subtree(node)
            elif record.type == CHARACTER_DATA and is_text_node(record.target):
                self._on_text(record.target)

    def _enqueue(self, records: list[MutationRecord]) -> None:
        if self._queue is not None:
            self._queue.put_nowait(records)

    async def _run(self, queue: asyncio.Queue[list[MutationRecord]]) -> None:
        while True:
            records = await queue.get()
            try:
                self.handle(records)
            except Exception:
                logger.exception("Failed to handle mutation batch")
            finally:
                queue.task_done()
