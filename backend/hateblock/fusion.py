"""Keyword + model decision fusion.

Order of evaluation for one text:
    1. Empty / whitespace-only text → ``skipped``.
    2. Keyword hit → ``toxic`` without consulting the model.
    3. Model ready → ``toxic`` iff any category probability ≥ threshold.
    4. Model not ready → ``unavailable``.

Model failures become an ``error`` outcome.  ``skipped``, ``unavailable``
and ``error`` all mean "no verdict": the content stays visible.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any

from hateblock.classifier import ClassifierUnavailableError, ToxicityClassifier
from hateblock.lexicon import KeywordFilter

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    TOXIC = "toxic"
    CLEAN = "clean"
    SKIPPED = "skipped"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass
class Verdict:
    """Result of evaluating one text."""

    outcome: Outcome
    source: str | None = None  # "lexicon" | "model"
    max_probability: float = 0.0
    categories: list[str] = field(default_factory=list)
    scores: dict[str, float] = field(default_factory=dict)
    matched_term: str | None = None

    @property
    def toxic(self) -> bool:
        return self.outcome is Outcome.TOXIC

    @property
    def decided(self) -> bool:
        return self.outcome in (Outcome.TOXIC, Outcome.CLEAN)


class ClassificationFusion:
    """Combines the keyword filter with an optional classifier.

    *settings* is any object exposing a ``threshold`` attribute; it is read
    on every evaluation.
    """

    def __init__(
        self,
        keyword_filter: KeywordFilter,
        settings: Any,
        classifier: ToxicityClassifier | None = None,
    ) -> None:
        self.keyword_filter = keyword_filter
        self.settings = settings
        self.classifier = classifier

    async def evaluate(self, text: str) -> Verdict:
        if not text or not text.strip():
            return Verdict(outcome=Outcome.SKIPPED)

        term = self.keyword_filter.first_match(text)
        if term is not None:
            return Verdict(
                outcome=Outcome.TOXIC,
                source="lexicon",
                max_probability=1.0,
                matched_term=term,
            )

        classifier = self.classifier
        if classifier is None or not classifier.ready:
            return Verdict(outcome=Outcome.UNAVAILABLE)

        try:
            predictions = await classifier.classify(text)
        except ClassifierUnavailableError:
            return Verdict(outcome=Outcome.UNAVAILABLE)
        except Exception:
            logger.exception("Toxicity classification error")
            return Verdict(outcome=Outcome.ERROR, source="model")

        threshold = self.settings.threshold
        scores = {p.category: p.probability for p in predictions}
        triggered = [p.category for p in predictions if p.probability >= threshold]
        max_probability = max(scores.values(), default=0.0)

        return Verdict(
            outcome=Outcome.TOXIC if triggered else Outcome.CLEAN,
            source="model",
            max_probability=max_probability,
            categories=triggered,
            scores=scores,
        )
