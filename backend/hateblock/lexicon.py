from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default marker terms
# ---------------------------------------------------------------------------
# A deliberately small starter list. Deployments are expected to replace it
# with a curated list through ``keywords_file``.

DEFAULT_KEYWORDS: tuple[str, ...] = (
    "hate",
    "kill",
    "stupid",
    "idiot",
    "dumb",
    "ugly",
    "fag",
    "nigger",
    "racist",
    "bigot",
    "homophobe",
    "moron",
    "terrorist",
    "scum",
)


def load_keywords(path: str | Path) -> list[str]:
    """Read a newline-delimited term list.

    Blank lines and lines starting with ``#`` are ignored.
    """
    terms: list[str] = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        term = line.strip()
        if not term or term.startswith("#"):
            continue
        terms.append(term)
    logger.info("Loaded %d marker terms from %s", len(terms), path)
    return terms


class KeywordFilter:
    """Case-insensitive substring match against a set of marker terms."""

    def __init__(self, terms: Iterable[str] = DEFAULT_KEYWORDS) -> None:
        # Deduplicate while keeping the configured order for match reporting.
        seen: dict[str, None] = {}
        for term in terms:
            term = term.strip().lower()
            if term:
                seen[term] = None
        self._terms: tuple[str, ...] = tuple(seen)

    @classmethod
    def from_file(cls, path: str | Path) -> "KeywordFilter":
        return cls(load_keywords(path))

    @property
    def terms(self) -> tuple[str, ...]:
        return self._terms

    def matches(self, text: str) -> bool:
        """Return ``True`` if *text* contains any marker term."""
        return self.first_match(text) is not None

    def first_match(self, text: str) -> str | None:
        """Return the first marker term found in *text*, or ``None``."""
        if not text or not text.strip():
            return None
        lowered = text.lower()
        for term in self._terms:
            if term in lowered:
                return term
        return None
