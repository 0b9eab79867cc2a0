"""
LexDesk Settings Store — Client-side key/value flags with an explicit load/save boundary.

Holds UI-only state that survives restarts:
    access_token          — bearer token for the backend
    archived_sessions     — chat session ids the user archived (list of str)
    show_archived_toggle  — whether archived chats are listed
    chat_model            — last chosen chat model

The store is an object handed to services, never ambient global state.
Reads come from memory after load(); set()/remove() write through to disk.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("lexdesk.engine.settings_store")

ACCESS_TOKEN = "access_token"
ARCHIVED_SESSIONS = "archived_sessions"
SHOW_ARCHIVED = "show_archived_toggle"
CHAT_MODEL = "chat_model"


class SettingsStore:
    """JSON-file backed key/value store."""

    def __init__(self, path: Optional[str] = None):
        # path=None keeps everything in memory (used by tests and previews)
        self._path = Path(path) if path else None
        self._data: Dict[str, Any] = {}
        self._loaded = False

    def load(self) -> "SettingsStore":
        """Read the file. A missing or corrupt file yields an empty store."""
        self._loaded = True
        self._data = {}
        if self._path is None or not self._path.exists():
            return self
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self._path}: {e}")
            return self
        if isinstance(data, dict):
            self._data = data
        else:
            logger.warning(f"Ignoring settings file {self._path}: not a JSON object")
        return self

    def save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)
        tmp.replace(self._path)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def get(self, key: str, default: Any = None) -> Any:
        self._ensure_loaded()
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._ensure_loaded()
        self._data[key] = value
        self.save()

    def remove(self, key: str) -> None:
        self._ensure_loaded()
        if self._data.pop(key, None) is not None:
            self.save()

    # -------------------------------------------------------------------
    # Typed helpers
    # -------------------------------------------------------------------

    @property
    def access_token(self) -> Optional[str]:
        token = self.get(ACCESS_TOKEN)
        return token if isinstance(token, str) and token else None

    def archived_sessions(self) -> List[str]:
        raw = self.get(ARCHIVED_SESSIONS, [])
        if not isinstance(raw, list):
            return []
        return [str(x) for x in raw]

    def set_archived_sessions(self, ids: List[str]) -> None:
        self.set(ARCHIVED_SESSIONS, [str(x) for x in ids])

    @property
    def show_archived(self) -> bool:
        return bool(self.get(SHOW_ARCHIVED, False))

    @show_archived.setter
    def show_archived(self, value: bool) -> None:
        self.set(SHOW_ARCHIVED, bool(value))

    def __repr__(self) -> str:
        return f"<SettingsStore path='{self._path}' keys={sorted(self._data)}>"
