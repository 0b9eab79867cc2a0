"""
LexDesk Documents Controller — Folder/document mutations and re-sync.

Handles:
- Fetching the document list and the folder path list (concurrently)
- Folder create / delete / rename / move and empty-folder cleanup
- Document move / copy / rename / delete / upload / summarize / download
- Bulk move / copy / delete / download with per-item success accounting

Every mutation is one backend round trip (bulk: one per item) followed by a
full re-fetch of documents and folders. The tree is never patched locally;
the page always shows what the server said last.

Per action:  IDLE → SUBMITTING → (RESYNCING → IDLE) | (IDLE on failure)

Failures never propagate out of the controller: each call site converts a
LexDeskError into a toast and leaves the previous lists in place.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from lexdesk.documents.models import DocumentRecord, parse_documents, parse_folders
from lexdesk.documents.paths import (
    ROOT,
    display_path,
    folder_name,
    is_descendant,
    join_path,
    normalize_destination,
    normalize_folder_path,
    parent_path,
    rebase,
    split_segments,
)
from lexdesk.documents.tree import FolderTree, build_folder_tree
from lexdesk.documents.view import FolderView
from lexdesk.engine.api import ApiClient
from lexdesk.engine.errors import (
    LexDeskBatchError,
    LexDeskError,
    LexDeskRequestError,
    LexDeskValidationError,
)
from lexdesk.engine.logging import log, log_batch_result, log_mutation
from lexdesk.ui.toast import ToastQueue

logger = logging.getLogger("lexdesk.documents.service")

# (filename, content, content_type)
UploadFile = Tuple[str, bytes, str]

_BULK_VERBS = {
    "move": ("Moved", "move"),
    "copy": ("Copied", "copy"),
    "delete": ("Deleted", "delete"),
    "upload": ("Uploaded", "upload"),
    "download": ("Downloaded", "download"),
}


class MutationState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    RESYNCING = "resyncing"


@dataclass
class BatchResult:
    """Outcome of a bulk operation, one entry per requested item."""

    action: str
    succeeded: List[Any] = field(default_factory=list)
    failed: List[Any] = field(default_factory=list)
    destination: Optional[str] = None
    # item → response body, for actions whose results are used (downloads)
    outputs: Dict[Any, Any] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def error(self) -> Optional[LexDeskBatchError]:
        if not self.failed:
            return None
        done, verb = _BULK_VERBS.get(self.action, (self.action.title(), self.action))
        return LexDeskBatchError(
            f"{done} {len(self.succeeded)}, failed to {verb} {len(self.failed)}",
            action=f"bulk_{self.action}",
            succeeded=len(self.succeeded),
            failed=len(self.failed),
            failed_ids=self.failed,
        )

    def summary(self) -> str:
        err = self.error
        if err is not None:
            return err.message
        done, _ = _BULK_VERBS.get(self.action, (self.action.title(), self.action))
        if self.action in ("delete", "download"):
            return f"{done} {len(self.succeeded)} document(s)"
        return f"{done} {len(self.succeeded)} document(s) to {display_path(self.destination)}"


class DocumentsController:
    """
    Backing logic of the Documents page.

    Holds the last fetched lists, the FolderView (cursor, expansion,
    selection) and the toast queue. One instance per page session.
    """

    def __init__(
        self,
        api: ApiClient,
        *,
        documents: Optional[List[DocumentRecord]] = None,
        folders: Optional[List[str]] = None,
        view: Optional[FolderView] = None,
        toasts: Optional[ToastQueue] = None,
        use_batch_endpoints: bool = False,
        max_upload_size_mb: int = 50,
    ):
        self._api = api
        self.documents: List[DocumentRecord] = list(documents or [])
        self.folders: List[str] = list(folders or [])
        self.view = view or FolderView()
        self.toasts = toasts or ToastQueue()
        self.state = MutationState.IDLE
        self.loading = False
        self.field_errors: Dict[str, str] = {}
        self._use_batch_endpoints = use_batch_endpoints
        self._max_upload_bytes = max_upload_size_mb * 1024 * 1024

    # -------------------------------------------------------------------
    # Derived data
    # -------------------------------------------------------------------

    @property
    def tree(self) -> FolderTree:
        """Rebuilt from the folder list on every access."""
        return build_folder_tree(self.folders)

    @property
    def folder_set(self) -> set:
        return {normalize_folder_path(p) for p in self.folders}

    def visible_documents(self) -> List[DocumentRecord]:
        return self.view.documents(self.documents)

    def visible_children(self) -> List[str]:
        return self.view.children(self.tree)

    def find_document(self, doc_id: int) -> Optional[DocumentRecord]:
        for doc in self.documents:
            if doc.id == doc_id:
                return doc
        return None

    def navigate(self, path: Optional[str]) -> str:
        return self.view.select_folder(path, self.tree)

    # -------------------------------------------------------------------
    # Fetching (Path Store reads)
    # -------------------------------------------------------------------

    async def fetch_documents(self) -> bool:
        try:
            payload = await self._api.get("/api/documents", default_error="Failed to fetch documents")
        except LexDeskError as e:
            logger.error(f"Error fetching documents: {e.message}")
            self.toasts.error(e.message)
            return False
        self.documents = parse_documents(payload)
        return True

    async def fetch_folders(self) -> bool:
        try:
            try:
                payload = await self._api.get("/api/documents/folders")
            except LexDeskRequestError:
                logger.debug("Primary folder endpoint failed, trying /folders/list")
                payload = await self._api.get(
                    "/api/documents/folders/list", default_error="Failed to fetch folders"
                )
        except LexDeskError as e:
            logger.error(f"Error fetching folders: {e.message}")
            self.toasts.error(e.message)
            return False
        self.folders = parse_folders(payload)
        return True

    async def refresh(self) -> bool:
        """Fetch documents and folders together; wait for both."""
        self.loading = True
        try:
            docs_ok, folders_ok = await asyncio.gather(self.fetch_documents(), self.fetch_folders())
        finally:
            self.loading = False
        return docs_ok and folders_ok

    async def _resync(self) -> None:
        self.state = MutationState.RESYNCING
        try:
            await self.refresh()
        finally:
            self.state = MutationState.IDLE

    def _ensure_cursor_exists(self) -> None:
        cursor = self.view.cursor
        if cursor != ROOT and cursor not in self.folder_set:
            logger.info(f"Open folder '{cursor}' no longer exists, returning to root")
            self.view.reset_cursor()

    # -------------------------------------------------------------------
    # Mutation pipeline
    # -------------------------------------------------------------------

    async def _mutate(
        self,
        category: str,
        action: str,
        target: Any,
        call: Callable[[], Awaitable[Any]],
        success_message: Optional[str],
        destination: Optional[str] = None,
    ) -> Optional[Any]:
        """
        Run one mutating request. On success: toast, log, full re-sync and
        return the response body (or True for empty bodies). On failure:
        error toast, log, return None.
        """
        self.state = MutationState.SUBMITTING
        try:
            body = await call()
        except LexDeskError as e:
            self.state = MutationState.IDLE
            logger.error(f"{action} failed for {target}: {e.message}")
            log(log_mutation(category, action, target, False, destination, error=e.message))
            self.toasts.error(e.message)
            return None

        log(log_mutation(category, action, target, True, destination))
        if success_message:
            self.toasts.success(success_message)
        await self._resync()
        return True if body is None else body

    def _invalid(self, field_name: str, message: str) -> LexDeskValidationError:
        err = LexDeskValidationError(message, field=field_name)
        self.field_errors[field_name] = message
        logger.debug(repr(err))
        return err

    # -------------------------------------------------------------------
    # Folder mutations
    # -------------------------------------------------------------------

    async def create_folder(self, name: str) -> Optional[str]:
        """
        Create *name* inside the open folder. Returns the new path, or None
        when rejected locally or by the backend.
        """
        self.field_errors.pop("folder_name", None)
        name = (name or "").strip()
        if not name:
            self._invalid("folder_name", "Folder name is required")
            return None
        if "/" in name:
            self._invalid("folder_name", "Folder name cannot contain '/'")
            return None

        parent = self.view.cursor
        new_path = join_path(parent, name)
        if new_path in self.folder_set:
            self.toasts.warning("A folder with this name already exists here")
            return None

        result = await self._mutate(
            "folders",
            "create_folder",
            new_path,
            lambda: self._api.post(
                "/api/documents/folders",
                json={"folder_name": name, "parent_folder": parent},
                default_error="Failed to create folder",
            ),
            "Folder created successfully",
        )
        if result is None:
            return None
        self.view.expand(parent)
        return new_path

    async def delete_folder(self, path: str) -> bool:
        path = normalize_folder_path(path)
        if path == ROOT:
            self.toasts.error("The root folder cannot be deleted")
            return False

        result = await self._mutate(
            "folders",
            "delete_folder",
            path,
            lambda: self._api.delete(
                f"/api/documents/folders/{quote(path, safe='')}",
                default_error="Failed to delete folder",
            ),
            "Folder deleted successfully.",
        )
        if result is None:
            return False
        cursor = self.view.cursor
        if cursor == path or is_descendant(cursor, path):
            self.view.reset_cursor()
        self._ensure_cursor_exists()
        return True

    async def rename_folder(self, path: str, new_name: str) -> Optional[str]:
        self.field_errors.pop("folder_name", None)
        new_name = (new_name or "").strip()
        if not new_name or "/" in new_name:
            self._invalid("folder_name", "Enter a folder name without '/'")
            return None
        return await self._relocate_folder(path, join_path(parent_path(path), new_name), "rename")

    async def move_folder(self, path: str, destination: Optional[str]) -> Optional[str]:
        destination = normalize_destination(destination)
        return await self._relocate_folder(path, join_path(destination, folder_name(path)), "move")

    async def _relocate_folder(self, old: str, new: str, verb: str) -> Optional[str]:
        """
        Folders have no ids, so rename/move materializes the new path for the
        folder and each descendant, moves their documents, then deletes the
        old path. Stops at the first failure; the re-sync shows whatever the
        backend completed.
        """
        old = normalize_folder_path(old)
        new = normalize_folder_path(new)
        if old == ROOT:
            self.toasts.error(f"The root folder cannot be {verb}d")
            return None
        if new == old:
            self.toasts.info("Folder is already there")
            return None
        if is_descendant(new, old):
            self._invalid("destination", "A folder cannot be moved inside itself")
            return None
        if new in self.folder_set:
            self.toasts.warning("A folder with this name already exists here")
            return None

        # Match by prefix: a descendant path may exist without its parents.
        docs_by_folder: Dict[str, List[int]] = {}
        for doc in self.documents:
            if doc.folder == old or is_descendant(doc.folder, old):
                docs_by_folder.setdefault(doc.folder, []).append(doc.id)
        below = {p for p in self.folder_set if is_descendant(p, old)} | set(docs_by_folder)
        below.discard(old)
        sources = [old] + sorted(below, key=lambda p: (len(split_segments(p)), p))

        self.state = MutationState.SUBMITTING
        try:
            for src in sources:
                target = rebase(src, old, new)
                await self._api.post(
                    "/api/documents/folders",
                    json={"folder_name": folder_name(target), "parent_folder": parent_path(target)},
                    default_error=f"Failed to {verb} folder",
                )
                for doc_id in docs_by_folder.get(src, []):
                    await self._api.post(
                        f"/api/documents/{doc_id}/move",
                        json={"destination_folder": target},
                        default_error=f"Failed to {verb} folder",
                    )
            await self._api.delete(
                f"/api/documents/folders/{quote(old, safe='')}",
                default_error=f"Failed to {verb} folder",
            )
        except LexDeskError as e:
            logger.error(f"{verb} folder {old} → {new} failed: {e.message}")
            log(log_mutation("folders", f"{verb}_folder", old, False, new, error=e.message))
            self.toasts.error(e.message)
            await self._resync()
            self._ensure_cursor_exists()
            return None

        log(log_mutation("folders", f"{verb}_folder", old, True, new))
        cursor = self.view.cursor
        if cursor == old or is_descendant(cursor, old):
            self.view.set_cursor(rebase(cursor, old, new))
        self.toasts.success(f"Folder {verb}d to {display_path(new)}")
        await self._resync()
        self._ensure_cursor_exists()
        return new

    async def cleanup_folders(self) -> Optional[int]:
        """Ask the backend to drop empty folder records."""
        result = await self._mutate(
            "folders",
            "cleanup_folders",
            ROOT,
            lambda: self._api.post(
                "/api/documents/folders/cleanup", default_error="Failed to cleanup folders"
            ),
            None,
        )
        if result is None:
            return None
        cleaned = result.get("cleaned_count", 0) if isinstance(result, dict) else 0
        self.toasts.success(f"Cleaned up {cleaned} folder paths")
        self._ensure_cursor_exists()
        return cleaned

    # -------------------------------------------------------------------
    # Document mutations
    # -------------------------------------------------------------------

    async def move_document(self, doc_id: int, destination: Optional[str]) -> bool:
        destination = normalize_destination(destination)
        doc = self.find_document(doc_id)
        if doc is None:
            self.toasts.error("Document not found")
            return False
        source = doc.folder
        if source == destination:
            self.toasts.error("Document is already in this folder")
            return False

        result = await self._mutate(
            "documents",
            "move_document",
            doc_id,
            lambda: self._api.post(
                f"/api/documents/{doc_id}/move",
                json={"destination_folder": destination},
                default_error="Failed to move document",
            ),
            f"Document moved successfully from {display_path(source)} to {display_path(destination)}",
            destination,
        )
        return result is not None

    async def copy_document(self, doc_id: int, destination: Optional[str]) -> bool:
        destination = normalize_destination(destination)
        result = await self._mutate(
            "documents",
            "copy_document",
            doc_id,
            lambda: self._api.post(
                f"/api/documents/{doc_id}/copy",
                json={"destination_folder": destination},
                default_error="Failed to copy document",
            ),
            "Document copied successfully",
            destination,
        )
        return result is not None

    async def rename_document(self, doc_id: int, new_name: str) -> bool:
        self.field_errors.pop("new_name", None)
        new_name = (new_name or "").strip()
        if not new_name:
            self._invalid("new_name", "A new name is required")
            return False
        result = await self._mutate(
            "documents",
            "rename_document",
            doc_id,
            lambda: self._api.put(
                f"/api/documents/{doc_id}/rename",
                json={"new_name": new_name},
                default_error="Failed to rename document",
            ),
            "Document renamed successfully",
        )
        return result is not None

    async def delete_document(self, doc_id: int) -> bool:
        result = await self._mutate(
            "documents",
            "delete_document",
            doc_id,
            lambda: self._api.delete(
                f"/api/documents/{doc_id}", default_error="Failed to delete document"
            ),
            "Document deleted successfully",
        )
        if result is not None:
            self.view.clear_selection()
        return result is not None

    async def summarize_document(self, doc_id: int) -> Optional[str]:
        """Not a mutation: no re-sync."""
        try:
            body = await self._api.post(
                f"/api/documents/{doc_id}/summarize", default_error="Failed to get summary"
            )
        except LexDeskError as e:
            self.toasts.error(e.message)
            return None
        if isinstance(body, dict) and body.get("summary"):
            return str(body["summary"])
        return "No summary available."

    async def download_document(self, doc_id: int) -> Optional[Tuple[str, bytes]]:
        """Fetch one file. Returns (filename, content); not a mutation, so no re-sync."""
        try:
            return await self._fetch_file(doc_id)
        except LexDeskError as e:
            logger.error(f"Download of document {doc_id} failed: {e.message}")
            self.toasts.error(e.message)
            return None

    async def _fetch_file(self, doc_id: int) -> Tuple[str, bytes]:
        doc = self.find_document(doc_id)
        if doc is None:
            raise LexDeskValidationError("Document not found", field="document_id")
        content = await self._api.download(
            f"/api/documents/{doc_id}/download", default_error="Failed to download document"
        )
        return doc.original_filename, content

    async def upload(self, files: Sequence[UploadFile], folder: Optional[str] = None) -> Optional[BatchResult]:
        """Upload each file into *folder* (default: the open folder)."""
        if not files:
            return None
        target = normalize_folder_path(folder if folder is not None else self.view.cursor)
        result = BatchResult("upload", destination=target)

        self.state = MutationState.SUBMITTING
        for filename, content, content_type in files:
            if len(content) > self._max_upload_bytes:
                logger.warning(f"Upload of {filename} rejected: {len(content)} bytes over limit")
                result.failed.append(filename)
                continue
            try:
                await self._api.post(
                    "/api/documents/upload",
                    files={"file": (filename, content, content_type or "application/octet-stream")},
                    data={"folder_path": target},
                    default_error="Failed to upload document",
                )
                result.succeeded.append(filename)
            except LexDeskError as e:
                logger.error(f"Upload of {filename} failed: {e.message}")
                result.failed.append(filename)

        return await self._finish_batch(result)

    # -------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------

    async def bulk_move(self, destination: Optional[str]) -> Optional[BatchResult]:
        destination = normalize_destination(destination)
        ids = self.view.selected
        if not ids:
            return None
        if self._use_batch_endpoints:
            return await self._batch_call(
                "move",
                ids,
                "/api/documents/bulk/move",
                {"document_ids": ids, "destination_folder": destination},
                destination,
            )
        return await self._per_item(
            "move",
            ids,
            lambda doc_id: self._api.post(
                f"/api/documents/{doc_id}/move",
                json={"destination_folder": destination},
                default_error="Failed to move document",
            ),
            destination,
        )

    async def bulk_copy(self, destination: Optional[str]) -> Optional[BatchResult]:
        destination = normalize_destination(destination)
        ids = self.view.selected
        if not ids:
            return None
        # no bulk copy endpoint exists
        return await self._per_item(
            "copy",
            ids,
            lambda doc_id: self._api.post(
                f"/api/documents/{doc_id}/copy",
                json={"destination_folder": destination},
                default_error="Failed to copy document",
            ),
            destination,
        )

    async def bulk_delete(self) -> Optional[BatchResult]:
        ids = self.view.selected
        if not ids:
            return None
        if self._use_batch_endpoints:
            return await self._batch_call(
                "delete", ids, "/api/documents/bulk/delete", {"document_ids": ids}, None
            )
        return await self._per_item(
            "delete",
            ids,
            lambda doc_id: self._api.delete(
                f"/api/documents/{doc_id}", default_error="Failed to delete document"
            ),
            None,
        )

    async def bulk_download(self) -> Optional[BatchResult]:
        """
        Fetch every selected file. Each (filename, content) pair lands in
        result.outputs; the selection is kept and nothing is re-fetched.
        """
        ids = self.view.selected
        if not ids:
            return None
        return await self._per_item("download", ids, self._fetch_file, None)

    async def _per_item(
        self,
        action: str,
        ids: List[int],
        call: Callable[[int], Awaitable[Any]],
        destination: Optional[str],
    ) -> BatchResult:
        result = BatchResult(action, destination=destination)
        self.state = MutationState.SUBMITTING
        for doc_id in ids:
            try:
                result.outputs[doc_id] = await call(doc_id)
                result.succeeded.append(doc_id)
            except LexDeskError as e:
                logger.error(f"Bulk {action} of document {doc_id} failed: {e.message}")
                result.failed.append(doc_id)
        return await self._finish_batch(result)

    async def _batch_call(
        self,
        action: str,
        ids: List[int],
        path: str,
        body: Dict[str, Any],
        destination: Optional[str],
    ) -> BatchResult:
        """Batch endpoint: the whole batch succeeds or fails as one unit."""
        result = BatchResult(action, destination=destination)
        self.state = MutationState.SUBMITTING
        try:
            await self._api.post(path, json=body, default_error=f"Failed to {action} documents")
            result.succeeded.extend(ids)
        except LexDeskError as e:
            logger.error(f"Bulk {action} failed: {e.message}")
            result.failed.extend(ids)
        return await self._finish_batch(result)

    async def _finish_batch(self, result: BatchResult) -> BatchResult:
        log(log_batch_result(
            result.action,
            len(result.succeeded),
            len(result.failed),
            result.failed,
            result.destination,
        ))
        message = result.summary()
        if not result.failed:
            self.toasts.success(message)
        elif result.succeeded:
            self.toasts.warning(message)
        else:
            self.toasts.error(message)

        if result.action == "download":
            self.state = MutationState.IDLE
            return result
        if result.action != "upload":
            self.view.clear_selection()
        await self._resync()
        return result

    def __repr__(self) -> str:
        return (
            f"<DocumentsController docs={len(self.documents)} folders={len(self.folders)} "
            f"cursor='{self.view.cursor}' state={self.state.value}>"
        )
