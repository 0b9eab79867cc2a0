"""
LexDesk Configuration — Load and validate lexdesk.yaml at startup.

Usage:
    from lexdesk.engine.config import load_config, get_config
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from lexdesk.engine.errors import LexDeskConfigError

CONFIG_FILE_NAME = "lexdesk.yaml"
API_URL_ENV = "LEXDESK_API_URL"


# ---------------------------------------------------------------------------
# Pydantic models for lexdesk.yaml
# ---------------------------------------------------------------------------

class ApiConfig(BaseModel):
    base_url: str = "http://localhost:8000"
    timeout: int = 30
    chat_timeout: int = 120
    chat_endpoints: List[str] = Field(
        default_factory=lambda: [
            "/api/chat/query-documents",
            "/api/chat/sessions",
        ]
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class DocumentsConfig(BaseModel):
    use_batch_endpoints: bool = False
    default_sort: str = "newest"
    max_upload_size_mb: int = 50

    @field_validator("default_sort")
    @classmethod
    def validate_sort(cls, v: str) -> str:
        if v not in ("newest", "oldest", "name", "size"):
            raise ValueError(f"default_sort must be newest/oldest/name/size, got '{v}'")
        return v


class StorageConfig(BaseModel):
    settings_file: str = ".lexdesk/settings.json"


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".lexdesk/logs"


class UIConfig(BaseModel):
    toast_duration_ms: int = 5000


class LexDeskConfig(BaseModel):
    """Root model for lexdesk.yaml."""
    name: str = "LexDesk"
    environment: str = "dev"

    api: ApiConfig = ApiConfig()
    documents: DocumentsConfig = DocumentsConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
    ui: UIConfig = UIConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[LexDeskConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for lexdesk.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists():
            return parent
    return current


def get_project_root() -> Path:
    """Return the project root directory."""
    return _find_project_root()


def load_config(config_path: Optional[str] = None) -> LexDeskConfig:
    """
    Load and validate lexdesk.yaml.

    Args:
        config_path: Explicit path to lexdesk.yaml. If None, auto-discovers.

    Returns:
        Validated LexDeskConfig instance. Defaults when no file exists.
        LEXDESK_API_URL, when set, overrides api.base_url.

    Raises:
        LexDeskConfigError if the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILE_NAME)

    raw: Dict[str, Any] = {}
    path = Path(config_path)
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise LexDeskConfigError(f"Invalid YAML in {path}: {e}", config_path=str(path)) from e
        if not isinstance(raw, dict):
            raise LexDeskConfigError(
                f"{path} must contain a mapping at the top level",
                config_path=str(path),
            )

    # lexdesk.yaml may nest name/environment under an "app:" key
    app_data = raw.get("app", {}) or {}
    config_data = {
        "name": app_data.get("name", raw.get("name", "LexDesk")),
        "environment": app_data.get("environment", raw.get("environment", "dev")),
        "api": dict(raw.get("api", {}) or {}),
        "documents": raw.get("documents", {}) or {},
        "storage": raw.get("storage", {}) or {},
        "logging": raw.get("logging", {}) or {},
        "ui": raw.get("ui", {}) or {},
    }

    env_url = os.environ.get(API_URL_ENV)
    if env_url:
        config_data["api"]["base_url"] = env_url

    try:
        _config = LexDeskConfig(**config_data)
    except ValidationError as e:
        raise LexDeskConfigError(
            f"Invalid configuration in {path}: {e}",
            config_path=str(path),
        ) from e
    return _config


def get_config() -> LexDeskConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
