from __future__ import annotations

import os

import pytest

from hateblock.audit import InMemoryAuditLog
from hateblock.classifier import CategoryScore, ToxicityClassifier
from hateblock.dom import LiveDocument
from hateblock.settings_store import SettingsStore

# Keep the app module from reaching for a real model or database at import.
os.environ.setdefault("CLASSIFIER_BACKEND", "none")
os.environ.setdefault("AUDIT_BACKEND", "memory")


class FakeClassifier(ToxicityClassifier):
    """Deterministic classifier for tests.

    *scores* maps category -> probability and is returned for every text
    unless *per_text* has an entry for that exact text.
    """

    name = "fake"

    def __init__(
        self,
        scores: dict[str, float] | None = None,
        per_text: dict[str, dict[str, float]] | None = None,
        fail_load: bool = False,
        error: Exception | None = None,
    ) -> None:
        super().__init__()
        self.scores = scores or {"toxicity": 0.1, "insult": 0.05}
        self.per_text = per_text or {}
        self.fail_load = fail_load
        self.error = error
        self.calls: list[str] = []

    async def _load(self) -> None:
        if self.fail_load:
            raise RuntimeError("model weights missing")

    async def _classify(self, text: str) -> list[CategoryScore]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        scores = self.per_text.get(text, self.scores)
        return [CategoryScore(category=c, probability=p) for c, p in scores.items()]


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def settings_store() -> SettingsStore:
    return SettingsStore(enabled=True, threshold=0.8)


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def comment_page() -> str:
    """A page with a feed of short comments."""
    return (
        "<html><head><title>Forum</title><script>var hate = 1;</script></head>"
        "<body>"
        "<header><h1>Community forum about gardening and other hobbies</h1></header>"
        '<div id="feed">'
        '<div class="comment" id="c1"><p>Lovely tomatoes this year.</p></div>'
        '<div class="comment" id="c2"><p>You are an idiot</p></div>'
        '<div class="comment" id="c3">First line of a longer reply.<br/>'
        "Second line continues the thought.</div>"
        "</div>"
        "</body></html>"
    )


@pytest.fixture
def document(comment_page: str) -> LiveDocument:
    return LiveDocument(comment_page, url="https://www.example.com/forum/thread/1")
