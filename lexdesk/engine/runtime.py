"""
LexDesk Runtime — Process-wide wiring of config, settings, logging and the API client.

Reflex state classes must stay serializable, so the non-serializable
collaborators (httpx client, settings file) live here and page states
fetch them through get_runtime().

Lifecycle:
    runtime = init_runtime(config)
    runtime.startup()
    ...
    await runtime.shutdown()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from lexdesk.engine.api import ApiClient
from lexdesk.engine.config import LexDeskConfig, get_config, get_project_root, load_config
from lexdesk.engine.errors import LexDeskConfigError
from lexdesk.engine.logging import init_logging, shutdown_logging
from lexdesk.engine.settings_store import SettingsStore
from lexdesk.ui.toast import ToastQueue

logger = logging.getLogger("lexdesk.engine.runtime")


class LexDeskRuntime:
    def __init__(self, config: LexDeskConfig, transport: Any = None):
        self.config = config
        self._transport = transport
        self.settings: Optional[SettingsStore] = None
        self.api: Optional[ApiClient] = None
        self._started = False

    def _resolve(self, relative: str) -> str:
        path = Path(relative)
        if not path.is_absolute():
            path = get_project_root() / path
        return str(path)

    def startup(self) -> None:
        if self._started:
            logger.warning("Runtime already started")
            return
        logger.info(f"Starting {self.config.name} ({self.config.environment})")

        init_logging(self._resolve(self.config.logging.directory), self.config.logging.level)
        self.settings = SettingsStore(self._resolve(self.config.storage.settings_file)).load()
        self.api = ApiClient.from_config(self.config, self.settings, transport=self._transport)
        self._started = True

    async def shutdown(self) -> None:
        if self.api is not None:
            await self.api.aclose()
        shutdown_logging()
        self._started = False
        logger.info("Runtime stopped")

    def new_toasts(self) -> ToastQueue:
        return ToastQueue(self.config.ui.toast_duration_ms)

    @property
    def is_started(self) -> bool:
        return self._started


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_runtime: Optional[LexDeskRuntime] = None


def init_runtime(config: Optional[LexDeskConfig] = None, transport: Any = None) -> LexDeskRuntime:
    """Create and start the global runtime."""
    global _runtime
    _runtime = LexDeskRuntime(config or get_config(), transport=transport)
    _runtime.startup()
    return _runtime


def boot_runtime(config_path: Optional[str] = None, transport: Any = None) -> LexDeskRuntime:
    """
    Load lexdesk.yaml and start the global runtime.

    An invalid config file is logged and replaced by the built-in defaults.
    """
    try:
        config = load_config(config_path)
    except LexDeskConfigError as e:
        logger.error(f"Invalid lexdesk.yaml, falling back to defaults: {e.message}")
        config = LexDeskConfig()
    return init_runtime(config, transport=transport)


def get_runtime() -> LexDeskRuntime:
    """Return the global runtime, starting one from lexdesk.yaml on first use."""
    global _runtime
    if _runtime is None:
        _runtime = init_runtime()
    return _runtime


def reset_runtime() -> None:
    global _runtime
    _runtime = None
