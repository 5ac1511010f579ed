"""Toxicity classifier port.

Every backend exposes the same contract: an explicit load step with an
observable state, then ``classify(text)`` returning one probability per
category.  The engine never assumes a backend is ready; a backend that
fails to load leaves the engine on the keyword filter alone.

Backends:
  - Detoxify (local model, default)
  - OpenAI-compatible moderation endpoint (remote, via httpx)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ClassifierState(str, enum.Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class CategoryScore:
    """Probability that a text belongs to one category."""

    category: str
    probability: float


class ClassifierUnavailableError(Exception):
    """Raised when ``classify`` is called before the classifier is ready."""


class ClassificationError(Exception):
    """Raised when the backend fails while classifying a text."""


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class ToxicityClassifier(ABC):
    """Abstract base class for all classifier backends."""

    name: str = "base"

    def __init__(self) -> None:
        self._state = ClassifierState.UNLOADED
        self._load_task: asyncio.Future[bool] | None = None

    @property
    def state(self) -> ClassifierState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is ClassifierState.READY

    async def load(self) -> bool:
        """Load the backend once.  Returns ``True`` when ready.

        Concurrent callers share the same load; a failed load is not retried.
        """
        if self._state is ClassifierState.READY:
            return True
        if self._state is ClassifierState.FAILED:
            return False
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._run_load())
        return await asyncio.shield(self._load_task)

    async def _run_load(self) -> bool:
        self._state = ClassifierState.LOADING
        logger.info("Loading %s classifier", self.name)
        try:
            await self._load()
        except Exception:
            logger.warning("Failed to load %s classifier", self.name, exc_info=True)
            self._state = ClassifierState.FAILED
            return False
        self._state = ClassifierState.READY
        logger.info("%s classifier loaded", self.name)
        return True

    async def classify(self, text: str) -> list[CategoryScore]:
        """Return per-category probabilities for *text*.

        Raises
        ------
        ClassifierUnavailableError
            If the backend has not finished loading (or failed to).
        ClassificationError
            If the backend fails on this text.
        """
        if not self.ready:
            raise ClassifierUnavailableError(f"{self.name} classifier is {self._state.value}")
        try:
            return await self._classify(text)
        except ClassificationError:
            raise
        except Exception as exc:
            raise ClassificationError(f"{self.name} classification failed: {exc}") from exc

    @abstractmethod
    async def _load(self) -> None:
        ...

    @abstractmethod
    async def _classify(self, text: str) -> list[CategoryScore]:
        ...


# ---------------------------------------------------------------------------
# Detoxify (local)
# ---------------------------------------------------------------------------


class DetoxifyClassifier(ToxicityClassifier):
    """Local Detoxify model.  Loading and inference run in the default executor."""

    name = "detoxify"

    def __init__(self, model_type: str = "original", device: str = "cpu") -> None:
        super().__init__()
        self.model_type = model_type
        self.device = device
        self._model: Any = None

    def _build_model(self) -> Any:
        from detoxify import Detoxify

        return Detoxify(self.model_type, device=self.device)

    async def _load(self) -> None:
        loop = asyncio.get_event_loop()
        self._model = await loop.run_in_executor(None, self._build_model)

    async def _classify(self, text: str) -> list[CategoryScore]:
        loop = asyncio.get_event_loop()
        raw = await loop.run_in_executor(None, self._model.predict, text)
        return [
            CategoryScore(category=label, probability=float(score))
            for label, score in raw.items()
        ]


# ---------------------------------------------------------------------------
# Moderation API (remote)
# ---------------------------------------------------------------------------


class ModerationApiClassifier(ToxicityClassifier):
    """OpenAI-compatible ``/moderations`` endpoint."""

    name = "moderation_api"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "omni-moderation-latest",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def _load(self) -> None:
        if not self._api_key:
            raise ValueError("Moderation API key is required")

    async def _classify(self, text: str) -> list[CategoryScore]:
        payload = {"model": self._model, "input": text}
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            response = await client.post(
                f"{self.base_url}/moderations",
                headers=self._headers(),
                json=payload,
            )
            response.raise_for_status()
            data = response.json()

        try:
            scores = data["results"][0]["category_scores"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ClassificationError(f"Unexpected moderation response: {data!r}") from exc
        return [
            CategoryScore(category=category, probability=float(probability))
            for category, probability in scores.items()
        ]


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_classifier(
    backend: str,
    *,
    detoxify_model: str = "original",
    moderation_api_url: str = "https://api.openai.com/v1",
    moderation_api_key: str = "",
    moderation_model: str = "omni-moderation-latest",
) -> ToxicityClassifier | None:
    """Create a classifier backend.

    Parameters
    ----------
    backend : str
        One of "detoxify", "moderation_api", "none".  "none" returns
        ``None`` and the engine runs on the keyword filter alone.
    """
    if backend == "detoxify":
        return DetoxifyClassifier(model_type=detoxify_model)
    elif backend == "moderation_api":
        return ModerationApiClassifier(
            api_key=moderation_api_key,
            base_url=moderation_api_url,
            model=moderation_model,
        )
    elif backend == "none":
        return None
    else:
        raise ValueError(f"Unknown classifier backend: {backend}")
