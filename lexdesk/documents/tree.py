"""
Folder tree reconstruction from the flat set of folder paths.

The backend only knows path strings. Hierarchy is inferred from path
segments on every read; nothing here is cached or mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from lexdesk.documents.paths import (
    folder_name,
    normalize_folder_path,
    parent_path,
    split_segments,
)


@dataclass
class FolderTree:
    """Parent path → direct child paths, in first-seen order."""

    tree: Dict[str, List[str]] = field(default_factory=dict)
    has_folders: bool = False

    def children(self, path: Optional[str]) -> List[str]:
        return list(self.tree.get(normalize_folder_path(path), []))

    def has_children(self, path: Optional[str]) -> bool:
        return bool(self.tree.get(normalize_folder_path(path)))

    def sorted_children(self, path: Optional[str]) -> List[str]:
        """Children ordered for display: case-insensitive by folder name."""
        return sorted(self.children(path), key=lambda p: folder_name(p).lower())


def build_folder_tree(folders: Iterable[Optional[str]]) -> FolderTree:
    """
    Build the parent → children map.

    A path with one segment hangs off "/"; otherwise its parent is "/" plus
    all segments but the last. "/" itself is never anyone's child.
    Duplicates (including spellings that normalize to the same path) are
    inserted once. Malformed paths are accepted as-is after normalization.
    """
    result = FolderTree()
    seen = set()

    for raw in folders:
        result.has_folders = True
        if not split_segments(raw):
            continue
        path = normalize_folder_path(raw)
        if path in seen:
            continue
        seen.add(path)
        result.tree.setdefault(parent_path(path), []).append(path)

    return result
