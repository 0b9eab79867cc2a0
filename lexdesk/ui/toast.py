"""
LexDesk Toasts — Transient notifications shown after user actions.

Toasts auto-dismiss after their duration unless they carry action buttons.
ToastQueue.to_list() produces plain dicts for Reflex state vars.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ToastKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


_ids = itertools.count(1)


@dataclass
class Toast:
    kind: ToastKind
    description: str
    title: Optional[str] = None
    duration_ms: int = 5000
    actions: List[str] = field(default_factory=list)
    id: str = field(default_factory=lambda: f"toast_{next(_ids)}")
    created_at: float = field(default_factory=time.monotonic)

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.actions:
            return False
        now = time.monotonic() if now is None else now
        return (now - self.created_at) * 1000 >= self.duration_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title or "",
            "description": self.description,
        }


class ToastQueue:
    """Ordered list of live toasts, oldest first."""

    def __init__(self, duration_ms: int = 5000):
        self._duration_ms = duration_ms
        self._toasts: List[Toast] = []

    def push(self, kind: ToastKind, description: str, title: Optional[str] = None,
             actions: Optional[List[str]] = None) -> Toast:
        toast = Toast(
            kind=kind,
            description=description,
            title=title,
            duration_ms=self._duration_ms,
            actions=list(actions or []),
        )
        self._toasts.append(toast)
        return toast

    def success(self, description: str, title: Optional[str] = None) -> Toast:
        return self.push(ToastKind.SUCCESS, description, title)

    def error(self, description: str, title: Optional[str] = None) -> Toast:
        return self.push(ToastKind.ERROR, description, title)

    def warning(self, description: str, title: Optional[str] = None) -> Toast:
        return self.push(ToastKind.WARNING, description, title)

    def info(self, description: str, title: Optional[str] = None) -> Toast:
        return self.push(ToastKind.INFO, description, title)

    def remove(self, toast_id: str) -> bool:
        before = len(self._toasts)
        self._toasts = [t for t in self._toasts if t.id != toast_id]
        return len(self._toasts) != before

    def expire(self, now: Optional[float] = None) -> int:
        """Drop expired toasts. Returns how many were removed."""
        before = len(self._toasts)
        self._toasts = [t for t in self._toasts if not t.is_expired(now)]
        return before - len(self._toasts)

    def clear(self) -> None:
        self._toasts.clear()

    @property
    def last(self) -> Optional[Toast]:
        return self._toasts[-1] if self._toasts else None

    def to_list(self) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self._toasts]

    def __len__(self) -> int:
        return len(self._toasts)

    def __iter__(self):
        return iter(self._toasts)
