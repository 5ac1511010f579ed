from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    """Runtime switches an operator can flip while pages are being watched."""

    enabled: bool = True
    threshold: float = Field(0.8, ge=0.0, le=1.0)

    model_config = {"extra": "forbid"}


@dataclass(frozen=True)
class SettingChange:
    old: Any
    new: Any


SettingsCallback = Callable[[dict[str, SettingChange]], None]


class SettingsStore:
    """Process-wide engine settings with change notifications.

    Consumers hold the store itself and read ``enabled`` / ``threshold``
    at the moment they need them, so updates apply without a reload.
    """

    def __init__(self, enabled: bool = True, threshold: float = 0.8) -> None:
        self._current = EngineSettings(enabled=enabled, threshold=threshold)
        self._subscribers: list[SettingsCallback] = []

    @classmethod
    def from_settings(cls, settings: Any) -> "SettingsStore":
        return cls(enabled=settings.enabled, threshold=settings.threshold)

    @property
    def enabled(self) -> bool:
        return self._current.enabled

    @property
    def threshold(self) -> float:
        return self._current.threshold

    def snapshot(self) -> EngineSettings:
        return self._current.model_copy()

    def update(self, **values: Any) -> dict[str, SettingChange]:
        """Validate and apply *values*; notify subscribers of real changes.

        Raises ``pydantic.ValidationError`` for unknown fields or
        out-of-range values, leaving the current settings untouched.
        """
        previous = self._current
        updated = EngineSettings.model_validate({**previous.model_dump(), **values})

        changes: dict[str, SettingChange] = {}
        for name in EngineSettings.model_fields:
            old, new = getattr(previous, name), getattr(updated, name)
            if old != new:
                changes[name] = SettingChange(old=old, new=new)

        self._current = updated
        if changes:
            self._notify(changes)
        return changes

    def subscribe(self, callback: SettingsCallback) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self._subscribers = [cb for cb in self._subscribers if cb is not callback]

        return unsubscribe

    def _notify(self, changes: dict[str, SettingChange]) -> None:
        for callback in list(self._subscribers):
            try:
                callback(changes)
            except Exception:
                logger.exception("Settings subscriber failed")
