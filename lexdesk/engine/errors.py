"""
LexDesk Error Hierarchy — Structured exceptions surfaced to the UI as toasts.

Every failure reaching a page controller is one of these. Controllers catch
LexDeskError at each call site and convert it to a toast, leaving prior
state intact. Nothing is retried automatically.

Hierarchy:
    LexDeskError
    ├── LexDeskValidationError  — Local, pre-request input check failed
    ├── LexDeskRequestError     — Backend returned non-success / transport failed
    │   └── LexDeskSessionError — Backend rejected the access token (401)
    ├── LexDeskBatchError       — Some items of a bulk operation failed
    └── LexDeskConfigError      — Invalid lexdesk.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class LexDeskError(Exception):
    """
    Base error for all LexDesk failures.
    All context is kept as keyword arguments so it serializes to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.action: Optional[str] = context.get("action")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "action": self.action,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k != "action"
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.action:
            parts.append(f"action={self.action}")
        return " | ".join(parts)


class LexDeskValidationError(LexDeskError):
    """
    Local validation failed before any request was sent
    (e.g. a required field is empty). Shown inline near the field.
    """

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        return d


class LexDeskRequestError(LexDeskError):
    """The backend returned a non-success response, or the call never completed."""

    def __init__(self, message: str, **context: Any):
        self.status_code: Optional[int] = context.get("status_code")
        self.response_body: Any = context.get("response_body")
        self.endpoint: Optional[str] = context.get("endpoint")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["status_code"] = self.status_code
        d["endpoint"] = self.endpoint
        return d


class LexDeskSessionError(LexDeskRequestError):
    """The access token was rejected. The stored token has been cleared."""
    pass


class LexDeskBatchError(LexDeskError):
    """
    A bulk operation finished with some items failed.
    Reported as one summary, never as a per-item error list.
    """

    def __init__(self, message: str, **context: Any):
        self.succeeded: int = context.get("succeeded", 0)
        self.failed: int = context.get("failed", 0)
        self.failed_ids: List[Any] = list(context.get("failed_ids", []))
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["succeeded"] = self.succeeded
        d["failed"] = self.failed
        d["failed_ids"] = self.failed_ids
        return d


class LexDeskConfigError(LexDeskError):
    """Configuration error — invalid lexdesk.yaml."""
    pass


# ---------------------------------------------------------------------------
# Response body → human-readable message
# ---------------------------------------------------------------------------

def format_api_error(body: Any, default: str = "An error occurred") -> str:
    """
    Extract a readable message from a backend error body.

    Handles FastAPI-style bodies:
    - {"detail": "text"}                          → "text"
    - {"detail": [{"loc": [...], "msg": "..."}]}  → "body.field: msg; ..."
    - {"detail": {...}}                           → JSON of the object
    - {"message": "text"}                         → "text"
    Anything else falls back to *default*.
    """
    if isinstance(body, str):
        return body.strip() or default
    if not isinstance(body, dict):
        return default

    detail = body.get("detail")
    if detail is None:
        message = body.get("message")
        return message if isinstance(message, str) and message else default

    if isinstance(detail, str):
        return detail

    if isinstance(detail, list):
        parts = []
        for err in detail:
            if isinstance(err, str):
                parts.append(err)
                continue
            if not isinstance(err, dict):
                continue
            loc = err.get("loc")
            field = ".".join(str(p) for p in loc) if loc else "field"
            parts.append(f"{field}: {err.get('msg') or 'Invalid value'}")
        return "; ".join(parts) if parts else default

    if isinstance(detail, dict):
        try:
            return json.dumps(detail)
        except (TypeError, ValueError):
            return default

    return default
