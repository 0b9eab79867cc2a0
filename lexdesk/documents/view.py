"""
Folder-scoped document view: cursor, expansion set, selection, derived lists.

The cursor names the open folder. Navigating to a folder that no longer
exists is allowed and simply shows nothing. Counts and visible lists are
recomputed from the latest fetch on every call.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from lexdesk.documents.models import DocumentRecord
from lexdesk.documents.paths import ROOT, folder_name, normalize_folder_path, split_segments
from lexdesk.documents.tree import FolderTree

SORT_ORDERS = ("newest", "oldest", "name", "size")


def visible_documents(docs: Iterable[DocumentRecord], cursor: Optional[str]) -> List[DocumentRecord]:
    """Documents directly inside *cursor*. None, "" and "/" all match root."""
    cursor = normalize_folder_path(cursor)
    return [d for d in docs if d.folder == cursor]


def visible_children(tree: FolderTree, cursor: Optional[str]) -> List[str]:
    return tree.children(cursor)


def count_in(docs: Iterable[DocumentRecord], path: Optional[str]) -> int:
    return len(visible_documents(docs, path))


def breadcrumbs(cursor: Optional[str]) -> List[Tuple[str, str]]:
    """[("All Documents", "/"), ("Contracts", "/Contracts"), ("2024", "/Contracts/2024")]"""
    crumbs = [("All Documents", ROOT)]
    segments = split_segments(cursor)
    for i, part in enumerate(segments):
        crumbs.append((part, ROOT + "/".join(segments[: i + 1])))
    return crumbs


def sort_documents(docs: List[DocumentRecord], sort_by: str = "newest") -> List[DocumentRecord]:
    if sort_by == "name":
        return sorted(docs, key=lambda d: d.original_filename.lower())
    if sort_by == "size":
        return sorted(docs, key=lambda d: d.file_size, reverse=True)
    if sort_by in ("newest", "oldest"):
        dated = [d for d in docs if d.created_at is not None]
        undated = [d for d in docs if d.created_at is None]
        dated.sort(key=lambda d: d.created_at.timestamp(), reverse=(sort_by == "newest"))
        return dated + undated
    return list(docs)


def filter_documents(
    docs: Iterable[DocumentRecord],
    cursor: Optional[str],
    search: str = "",
    file_type: str = "all",
    sort_by: str = "newest",
) -> List[DocumentRecord]:
    """Folder filter + search over filename/tags/summary + type substring, then sort."""
    matches = [
        d for d in visible_documents(docs, cursor)
        if d.matches_search(search)
        and (not file_type or file_type == "all" or file_type in d.file_type)
    ]
    return sort_documents(matches, sort_by)


class FolderView:
    """
    UI state for the Documents page folder panel.

    Expansion is independent of the cursor: selecting a folder expands that
    folder if it has children, but never its ancestors.
    """

    def __init__(
        self,
        cursor: Optional[str] = ROOT,
        expanded: Optional[Iterable[str]] = None,
        selected: Optional[Iterable[int]] = None,
    ):
        self._cursor = normalize_folder_path(cursor)
        self._expanded: Set[str] = {ROOT}
        if expanded:
            self._expanded.update(normalize_folder_path(p) for p in expanded)
        self._selected: List[int] = list(dict.fromkeys(selected or []))

    @property
    def cursor(self) -> str:
        return self._cursor

    def set_cursor(self, path: Optional[str]) -> str:
        self._cursor = normalize_folder_path(path)
        return self._cursor

    def reset_cursor(self) -> None:
        self._cursor = ROOT

    def select_folder(self, path: Optional[str], tree: FolderTree) -> str:
        """Navigate to *path*, auto-expanding it when it has children."""
        cursor = self.set_cursor(path)
        if tree.has_children(cursor):
            self._expanded.add(cursor)
        return cursor

    # -------------------------------------------------------------------
    # Expansion
    # -------------------------------------------------------------------

    @property
    def expanded(self) -> Set[str]:
        return set(self._expanded)

    def is_expanded(self, path: Optional[str]) -> bool:
        return normalize_folder_path(path) in self._expanded

    def expand(self, path: Optional[str]) -> None:
        self._expanded.add(normalize_folder_path(path))

    def toggle_expanded(self, path: Optional[str]) -> bool:
        """Flip expansion of *path*. Returns the new state."""
        path = normalize_folder_path(path)
        if path in self._expanded:
            self._expanded.discard(path)
            return False
        self._expanded.add(path)
        return True

    # -------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------

    @property
    def selected(self) -> List[int]:
        return list(self._selected)

    def toggle_selection(self, doc_id: int) -> bool:
        if doc_id in self._selected:
            self._selected.remove(doc_id)
            return False
        self._selected.append(doc_id)
        return True

    def clear_selection(self) -> None:
        self._selected = []

    # -------------------------------------------------------------------
    # Derived lists
    # -------------------------------------------------------------------

    def documents(self, docs: Iterable[DocumentRecord]) -> List[DocumentRecord]:
        return visible_documents(docs, self._cursor)

    def children(self, tree: FolderTree) -> List[str]:
        return visible_children(tree, self._cursor)

    def breadcrumbs(self) -> List[Tuple[str, str]]:
        return breadcrumbs(self._cursor)

    def __repr__(self) -> str:
        return f"<FolderView cursor='{self._cursor}' expanded={len(self._expanded)} selected={len(self._selected)}>"


def folder_rows(tree: FolderTree, docs: Iterable[DocumentRecord], view: "FolderView") -> List[Dict[str, Any]]:
    """
    Flatten the visible part of the tree for rendering: children of "/"
    always, deeper levels only under expanded folders.
    """
    counts: Dict[str, int] = {}
    for doc in docs:
        counts[doc.folder] = counts.get(doc.folder, 0) + 1

    rows: List[Dict[str, Any]] = []
    stack = [(p, 0) for p in reversed(tree.sorted_children(ROOT))]
    while stack:
        path, depth = stack.pop()
        expanded = view.is_expanded(path)
        rows.append({
            "path": path,
            "name": folder_name(path),
            "depth": depth,
            "indent": f"{12 + depth * 16}px",
            "count": counts.get(path, 0),
            "has_children": tree.has_children(path),
            "expanded": expanded,
            "active": path == view.cursor,
        })
        if expanded:
            stack.extend((c, depth + 1) for c in reversed(tree.sorted_children(path)))
    return rows
