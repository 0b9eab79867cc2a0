"""
LexDesk Document Models — Pydantic definitions of backend document payloads.

DocumentRecord: one entry from GET /api/documents.

Folder membership is by path string only: a document belongs to the folder
whose normalized path equals its normalized ``folder_path``. There is no
folder object graph on the client.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lexdesk.documents.paths import normalize_folder_path

logger = logging.getLogger("lexdesk.documents.models")


class DocumentRecord(BaseModel):
    """
    Document metadata as returned by the backend.

    ``folder_path`` of None or "" means the root folder.
    ``tags`` arrives as a comma separated string; lists are joined on input.
    """

    model_config = ConfigDict(extra="ignore")

    id: int = Field(description="Backend primary key")
    original_filename: str = Field(default="", description="Name the file was uploaded with")
    file_size: int = Field(default=0, ge=0, description="Size in bytes")
    file_type: str = Field(default="", description="MIME type or extension reported by the backend")
    folder_path: Optional[str] = Field(default=None, description="Owning folder path")
    created_at: Optional[datetime] = Field(default=None, description="Upload timestamp")
    summary: Optional[str] = Field(default=None, description="AI summary, when generated")
    tags: Optional[str] = Field(default=None, description="Comma separated tags")

    @field_validator("tags", mode="before")
    @classmethod
    def join_tag_list(cls, v: Any) -> Any:
        if isinstance(v, list):
            return ", ".join(str(t) for t in v)
        return v

    @field_validator("original_filename", "file_type", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def folder(self) -> str:
        """Normalized owning folder."""
        return normalize_folder_path(self.folder_path)

    def matches_search(self, term: str) -> bool:
        """Case-insensitive match on filename, tags and summary. Blank matches all."""
        term = (term or "").strip().lower()
        if not term:
            return True
        return any(
            term in (value or "").lower()
            for value in (self.original_filename, self.tags, self.summary)
        )

    def to_row(self) -> Dict[str, Any]:
        """Flat dict for table rendering."""
        return {
            "id": self.id,
            "name": self.original_filename,
            "size": format_file_size(self.file_size),
            "file_type": self.file_type,
            "folder": self.folder,
            "created_at": self.created_at.isoformat() if self.created_at else "",
            "summary": self.summary or "",
            "tags": self.tags or "",
        }


def parse_documents(payload: Any) -> List[DocumentRecord]:
    """
    Parse a GET /api/documents body. Entries that fail validation are
    skipped with a warning instead of failing the whole list.
    """
    if isinstance(payload, dict):
        payload = payload.get("documents", [])
    if not isinstance(payload, list):
        return []

    docs: List[DocumentRecord] = []
    for item in payload:
        try:
            docs.append(DocumentRecord.model_validate(item))
        except ValueError as e:
            logger.warning(f"Skipping malformed document entry: {e}")
    return docs


def parse_folders(payload: Any) -> List[str]:
    """Folder list bodies are either a bare list or {"folders": [...]}."""
    if isinstance(payload, dict):
        payload = payload.get("folders")
    if not isinstance(payload, list):
        return []
    return [p for p in payload if isinstance(p, str)]


def format_file_size(num_bytes: int) -> str:
    """1536 → "1.5 KB". Units step by 1024 up to GB."""
    if num_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while num_bytes >= 1024 ** (i + 1) and i < len(units) - 1:
        i += 1
    value = round(num_bytes / (1024 ** i), 2)
    if value == int(value):
        value = int(value)
    return f"{value} {units[i]}"
