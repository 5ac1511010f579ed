"""Tests for hateblock.settings_store."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from config import Settings
from hateblock.settings_store import SettingChange, SettingsStore


class TestUpdate:
    """Validated updates with change notifications."""

    def test_defaults(self, settings_store: SettingsStore):
        assert settings_store.enabled is True
        assert settings_store.threshold == 0.8

    def test_update_returns_changes(self, settings_store: SettingsStore):
        changes = settings_store.update(threshold=0.5)
        assert changes == {"threshold": SettingChange(old=0.8, new=0.5)}
        assert settings_store.threshold == 0.5

    def test_subscriber_notified(self, settings_store: SettingsStore):
        received: list = []
        settings_store.subscribe(received.append)
        settings_store.update(enabled=False)
        assert received == [{"enabled": SettingChange(old=True, new=False)}]

    def test_no_notification_without_change(self, settings_store: SettingsStore):
        received: list = []
        settings_store.subscribe(received.append)
        assert settings_store.update(enabled=True, threshold=0.8) == {}
        assert received == []

    def test_unsubscribe(self, settings_store: SettingsStore):
        received: list = []
        unsubscribe = settings_store.subscribe(received.append)
        unsubscribe()
        settings_store.update(threshold=0.3)
        assert received == []

    @pytest.mark.parametrize("values", [{"threshold": 1.5}, {"threshold": -0.1}, {"paused": True}])
    def test_invalid_update_rejected(self, settings_store: SettingsStore, values):
        with pytest.raises(ValidationError):
            settings_store.update(**values)
        assert settings_store.threshold == 0.8
        assert settings_store.enabled is True

    def test_failing_subscriber_does_not_block_others(self, settings_store: SettingsStore):
        received: list = []

        def broken(changes):
            raise RuntimeError("boom")

        settings_store.subscribe(broken)
        settings_store.subscribe(received.append)
        settings_store.update(threshold=0.6)
        assert len(received) == 1

    def test_snapshot_is_a_copy(self, settings_store: SettingsStore):
        snapshot = settings_store.snapshot()
        settings_store.update(threshold=0.2)
        assert snapshot.threshold == 0.8

    def test_from_settings(self):
        store = SettingsStore.from_settings(Settings(enabled=False, threshold=0.65))
        assert store.enabled is False
        assert store.threshold == 0.65
