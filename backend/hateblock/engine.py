from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Coroutine

from bs4 import NavigableString, PageElement

from hateblock.audit import AuditLog, InMemoryAuditLog
from hateblock.classifier import ToxicityClassifier
from hateblock.dom import LiveDocument
from hateblock.fusion import ClassificationFusion, Verdict
from hateblock.lexicon import KeywordFilter
from hateblock.scanner import ContentUnit, DocumentScanner
from hateblock.settings_store import SettingChange, SettingsStore
from hateblock.suppressor import DEFAULT_LABEL_TEXT, ContentSuppressor
from hateblock.tracker import MutationTracker

logger = logging.getLogger(__name__)


@dataclass
class EngineStats:
    scanned: int = 0      # content units handed to fusion
    suppressed: int = 0   # containers newly marked
    undecided: int = 0    # skipped / unavailable / error outcomes


class HateBlockEngine:
    """Keeps one live document free of toxic content.

    Typical flow
    ------------
    1. ``start`` -- load the classifier, scan the whole page, then watch
       for mutations.
    2. Mutations -- added subtrees are scanned, edited text is re-judged.
    3. Settings -- disabling stops watching; enabling rescans the page.
       Threshold changes apply to the next evaluation only.
    """

    def __init__(
        self,
        document: LiveDocument,
        settings: SettingsStore,
        classifier: ToxicityClassifier | None = None,
        audit_log: AuditLog | None = None,
        keyword_filter: KeywordFilter | None = None,
        label_text: str = DEFAULT_LABEL_TEXT,
    ) -> None:
        self.document = document
        self.settings = settings
        self.classifier = classifier
        self.audit_log = audit_log if audit_log is not None else InMemoryAuditLog()
        self.fusion = ClassificationFusion(
            keyword_filter if keyword_filter is not None else KeywordFilter(),
            settings,
            classifier,
        )
        self.suppressor = ContentSuppressor(document, self.audit_log, label_text=label_text)
        self.scanner = DocumentScanner(document)
        self.tracker = MutationTracker(document, on_subtree=self.scan, on_text=self.evaluate_node)
        self.stats = EngineStats()

        self._tasks: set[asyncio.Future] = set()
        self._activation: asyncio.Future | None = None
        self._stopped = False
        self._unsubscribe = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._stopped = False
        if self._unsubscribe is None:
            self._unsubscribe = self.settings.subscribe(self._on_settings_changed)
        if not self.settings.enabled:
            logger.info("HateBlock is disabled on %s", self.document.url)
            return
        await self._schedule_activation()

    async def stop(self) -> None:
        """Detach from settings and the document, then finish in-flight work."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._stopped = True
        self.tracker.stop()
        await self.drain()

    async def drain(self) -> None:
        """Wait for queued mutations and every pending evaluation to finish."""
        while True:
            # Let scheduled mutation deliveries reach the tracker.
            await asyncio.sleep(0)
            await self.tracker.join()
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                if self.tracker.active and self.document.has_pending_records():
                    continue
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _schedule_activation(self) -> asyncio.Future:
        """Start an activation unless one is already waiting on the classifier."""
        if self._activation is None or self._activation.done():
            self._activation = self._spawn(self._activate())
        return self._activation

    async def _activate(self) -> None:
        if self.classifier is not None and not await self.classifier.load():
            logger.warning("Classifier unavailable; using keyword filter only")
        # Settings may have flipped, or the engine stopped, during the load.
        if self._stopped or not self.settings.enabled:
            return
        self.scan()
        self.tracker.start()

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(self, root: PageElement | None = None) -> int:
        """Walk *root* (default: body) and schedule one evaluation per unit."""
        units = self.scanner.scan(root)
        for unit in units:
            self._spawn(self._process(unit))
        return len(units)

    def evaluate_node(self, node: NavigableString) -> bool:
        """Schedule the single-node path for an added or edited text node."""
        unit = self.scanner.content_unit(node)
        if unit is None:
            return False
        self._spawn(self._process(unit))
        return True

    async def _process(self, unit: ContentUnit) -> Verdict:
        self.stats.scanned += 1
        verdict = await self.fusion.evaluate(unit.text)
        if not verdict.decided:
            self.stats.undecided += 1
            return verdict
        if verdict.toxic and await self.suppressor.suppress(unit.container, unit.text):
            self.stats.suppressed += 1
        return verdict

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Future:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Content evaluation failed", exc_info=exc)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def _on_settings_changed(self, changes: dict[str, SettingChange]) -> None:
        if "threshold" in changes:
            logger.info("HateBlock: toxicity threshold set to %.2f", changes["threshold"].new)
        if "enabled" in changes:
            if changes["enabled"].new:
                logger.info("HateBlock enabled: scanning %s", self.document.url)
                self._schedule_activation()
            else:
                logger.info("HateBlock disabled: stopped monitoring %s", self.document.url)
                self.tracker.stop()
