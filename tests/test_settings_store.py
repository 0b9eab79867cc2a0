"""Unit tests for lexdesk.engine.settings_store."""

import json

from lexdesk.engine.settings_store import (
    ACCESS_TOKEN,
    ARCHIVED_SESSIONS,
    SettingsStore,
)


class TestSettingsStore:
    def test_in_memory(self):
        store = SettingsStore()
        store.set("chat_model", "gpt")
        assert store.get("chat_model") == "gpt"
        assert store.get("missing", "x") == "x"

    def test_persists_on_set(self, tmp_path):
        path = tmp_path / "s" / "settings.json"
        store = SettingsStore(str(path)).load()
        store.set(ACCESS_TOKEN, "tok")
        assert json.loads(path.read_text())[ACCESS_TOKEN] == "tok"
        assert SettingsStore(str(path)).load().access_token == "tok"

    def test_remove(self, tmp_path):
        path = tmp_path / "settings.json"
        store = SettingsStore(str(path)).load()
        store.set(ACCESS_TOKEN, "tok")
        store.remove(ACCESS_TOKEN)
        assert store.access_token is None
        assert ACCESS_TOKEN not in json.loads(path.read_text())

    def test_missing_file_is_empty(self, tmp_path):
        store = SettingsStore(str(tmp_path / "nope.json")).load()
        assert store.get(ACCESS_TOKEN) is None

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        store = SettingsStore(str(path)).load()
        assert store.archived_sessions() == []

    def test_archived_sessions_are_strings(self):
        store = SettingsStore()
        store.set_archived_sessions([1, "2"])
        assert store.archived_sessions() == ["1", "2"]
        assert store.get(ARCHIVED_SESSIONS) == ["1", "2"]

    def test_archived_sessions_tolerates_garbage(self):
        store = SettingsStore()
        store.set(ARCHIVED_SESSIONS, "not a list")
        assert store.archived_sessions() == []

    def test_show_archived(self):
        store = SettingsStore()
        assert store.show_archived is False
        store.show_archived = True
        assert store.show_archived is True
