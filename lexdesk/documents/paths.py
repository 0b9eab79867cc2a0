"""
Folder path helpers.

Folders have no ids; a folder *is* its path string. Canonical form:
leading "/", no trailing "/", no empty segments, root is "/".
None, "" and "/" all name the root.
"""

from __future__ import annotations

from typing import List, Optional

ROOT = "/"


def split_segments(path: Optional[str]) -> List[str]:
    """Split on "/" and drop empty segments. Tolerates a missing leading slash."""
    if not path:
        return []
    return [p for p in path.strip().split("/") if p]


def normalize_folder_path(path: Optional[str]) -> str:
    """
    Canonicalize a folder path.

        None, "", "  ", "/"  → "/"
        "/Contracts/"        → "/Contracts"
        "sub"                → "/sub"
    """
    segments = split_segments(path)
    if not segments:
        return ROOT
    return ROOT + "/".join(segments)


def normalize_destination(destination: Optional[str]) -> str:
    """Destination for move/copy: blank means root, a missing leading "/" is added."""
    return normalize_folder_path(destination)


def parent_path(path: Optional[str]) -> str:
    """"/A/B/C" → "/A/B"; "/A" → "/"; root is its own parent."""
    segments = split_segments(path)
    if len(segments) <= 1:
        return ROOT
    return ROOT + "/".join(segments[:-1])


def folder_name(path: Optional[str]) -> str:
    """Last non-empty segment; empty string for root."""
    segments = split_segments(path)
    return segments[-1] if segments else ""


def join_path(parent: Optional[str], name: str) -> str:
    parent = normalize_folder_path(parent)
    name = name.strip().strip("/")
    if parent == ROOT:
        return normalize_folder_path(name)
    return normalize_folder_path(f"{parent}/{name}")


def is_descendant(path: Optional[str], ancestor: Optional[str]) -> bool:
    """True if *path* lies strictly below *ancestor*."""
    path = normalize_folder_path(path)
    ancestor = normalize_folder_path(ancestor)
    if path == ancestor:
        return False
    if ancestor == ROOT:
        return True
    return path.startswith(ancestor + "/")


def rebase(path: str, old_prefix: str, new_prefix: str) -> str:
    """Replace *old_prefix* with *new_prefix* on *path* (which must be at or below it)."""
    path = normalize_folder_path(path)
    old_prefix = normalize_folder_path(old_prefix)
    new_prefix = normalize_folder_path(new_prefix)
    if path == old_prefix:
        return new_prefix
    suffix = path[len(old_prefix):] if old_prefix != ROOT else path
    return normalize_folder_path(new_prefix + suffix)


def display_path(path: Optional[str]) -> str:
    """User-facing label: root reads as "Root"."""
    path = normalize_folder_path(path)
    return "Root" if path == ROOT else path
