"""
LexDesk — Documents & Folders Page

Route: /documents
Purpose: Browse the folder tree, open folders, move/copy/delete documents
(singly or in bulk), upload files and manage folders.

DocumentsState only carries serializable view data. Each handler rebuilds a
DocumentsController from it, runs the operation, and writes the result back.
"""

from typing import Any, Dict, List

import reflex as rx

from lexdesk.components.layout import app_layout
from lexdesk.documents.models import DocumentRecord
from lexdesk.documents.service import DocumentsController
from lexdesk.documents.view import FolderView, filter_documents, folder_rows
from lexdesk.documents.tree import build_folder_tree
from lexdesk.engine.runtime import get_runtime

MAX_TOASTS = 5


class DocumentsState(rx.State):
    """State for the documents page."""

    # Last fetched lists
    raw_documents: list[dict] = []
    folders: list[str] = []

    # View
    cursor: str = "/"
    expanded: list[str] = ["/"]
    selected: list[int] = []
    search_query: str = ""
    file_type: str = "all"
    sort_by: str = "newest"

    # Dialog inputs
    new_folder_name: str = ""
    folder_error: str = ""
    move_destination: str = ""
    rename_target: str = ""
    rename_value: str = ""

    # Feedback
    loading: bool = False
    uploading: bool = False
    summary_text: str = ""
    toasts: list[dict] = []

    # -------------------------------------------------------------------
    # Controller bridge
    # -------------------------------------------------------------------

    def _controller(self) -> DocumentsController:
        runtime = get_runtime()
        return DocumentsController(
            runtime.api,
            documents=[DocumentRecord.model_validate(d) for d in self.raw_documents],
            folders=list(self.folders),
            view=FolderView(self.cursor, self.expanded, self.selected),
            toasts=runtime.new_toasts(),
            use_batch_endpoints=runtime.config.documents.use_batch_endpoints,
            max_upload_size_mb=runtime.config.documents.max_upload_size_mb,
        )

    def _absorb(self, ctl: DocumentsController) -> None:
        self.raw_documents = [d.model_dump(mode="json") for d in ctl.documents]
        self.folders = list(ctl.folders)
        self.cursor = ctl.view.cursor
        self.expanded = sorted(ctl.view.expanded)
        self.selected = ctl.view.selected
        self.folder_error = " ".join(ctl.field_errors.values())
        self.toasts = (self.toasts + ctl.toasts.to_list())[-MAX_TOASTS:]

    # -------------------------------------------------------------------
    # Derived vars
    # -------------------------------------------------------------------

    @rx.var
    def visible_rows(self) -> List[Dict[str, Any]]:
        docs = [DocumentRecord.model_validate(d) for d in self.raw_documents]
        return [
            d.to_row()
            for d in filter_documents(docs, self.cursor, self.search_query, self.file_type, self.sort_by)
        ]

    @rx.var
    def tree_rows(self) -> List[Dict[str, Any]]:
        docs = [DocumentRecord.model_validate(d) for d in self.raw_documents]
        view = FolderView(self.cursor, self.expanded, self.selected)
        return folder_rows(build_folder_tree(self.folders), docs, view)

    @rx.var
    def crumbs(self) -> List[Dict[str, str]]:
        return [{"label": label, "path": path} for label, path in FolderView(self.cursor).breadcrumbs()]

    @rx.var
    def has_folders(self) -> bool:
        return build_folder_tree(self.folders).has_folders

    @rx.var
    def selected_count(self) -> int:
        return len(self.selected)

    @rx.var
    def root_count(self) -> int:
        return sum(1 for d in self.raw_documents if (d.get("folder_path") or "/").strip("/") == "")

    # -------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------

    async def load(self):
        self.loading = True
        yield
        ctl = self._controller()
        try:
            await ctl.refresh()
            self._absorb(ctl)
        finally:
            self.loading = False

    def navigate_folder(self, path: str) -> None:
        ctl = self._controller()
        ctl.navigate(path)
        self._absorb(ctl)

    def toggle_folder(self, path: str) -> None:
        view = FolderView(self.cursor, self.expanded, self.selected)
        view.toggle_expanded(path)
        self.expanded = sorted(view.expanded)

    def toggle_select(self, doc_id: int) -> None:
        view = FolderView(self.cursor, self.expanded, self.selected)
        view.toggle_selection(doc_id)
        self.selected = view.selected

    def clear_selection(self) -> None:
        self.selected = []

    def set_search(self, value: str) -> None:
        self.search_query = value

    def choose_file_type(self, value: str) -> None:
        self.file_type = value

    def choose_sort(self, value: str) -> None:
        self.sort_by = value

    def update_new_folder_name(self, value: str) -> None:
        self.new_folder_name = value
        self.folder_error = ""

    def update_move_destination(self, value: str) -> None:
        self.move_destination = value

    def start_rename(self, doc_id: int, current: str) -> None:
        self.rename_target = str(doc_id)
        self.rename_value = current

    def update_rename_value(self, value: str) -> None:
        self.rename_value = value

    def dismiss_toast(self, toast_id: str) -> None:
        self.toasts = [t for t in self.toasts if t["id"] != toast_id]

    async def create_folder(self) -> None:
        ctl = self._controller()
        created = await ctl.create_folder(self.new_folder_name)
        self._absorb(ctl)
        if created:
            self.new_folder_name = ""

    async def delete_folder(self, path: str) -> None:
        ctl = self._controller()
        await ctl.delete_folder(path)
        self._absorb(ctl)

    async def rename_open_folder(self) -> None:
        """Rename the open folder to the name typed in the folder input."""
        ctl = self._controller()
        if await ctl.rename_folder(self.cursor, self.new_folder_name):
            self.new_folder_name = ""
        self._absorb(ctl)

    async def move_open_folder(self) -> None:
        ctl = self._controller()
        await ctl.move_folder(self.cursor, self.move_destination)
        self._absorb(ctl)

    async def cleanup_folders(self) -> None:
        ctl = self._controller()
        await ctl.cleanup_folders()
        self._absorb(ctl)

    async def move_document(self, doc_id: int) -> None:
        ctl = self._controller()
        await ctl.move_document(doc_id, self.move_destination)
        self._absorb(ctl)

    async def copy_document(self, doc_id: int) -> None:
        ctl = self._controller()
        await ctl.copy_document(doc_id, self.move_destination)
        self._absorb(ctl)

    async def rename_document(self) -> None:
        if not self.rename_target:
            return
        ctl = self._controller()
        if await ctl.rename_document(int(self.rename_target), self.rename_value):
            self.rename_target = ""
            self.rename_value = ""
        self._absorb(ctl)

    async def delete_document(self, doc_id: int) -> None:
        ctl = self._controller()
        await ctl.delete_document(doc_id)
        self._absorb(ctl)

    async def summarize(self, doc_id: int) -> None:
        ctl = self._controller()
        self.summary_text = await ctl.summarize_document(doc_id) or ""
        self._absorb(ctl)

    async def download_document(self, doc_id: int):
        ctl = self._controller()
        fetched = await ctl.download_document(doc_id)
        self._absorb(ctl)
        if fetched is not None:
            filename, content = fetched
            return rx.download(data=content, filename=filename)

    async def bulk_download(self):
        ctl = self._controller()
        result = await ctl.bulk_download()
        self._absorb(ctl)
        if result is None:
            return None
        return [rx.download(data=content, filename=name) for name, content in result.outputs.values()]

    async def bulk_move(self) -> None:
        ctl = self._controller()
        await ctl.bulk_move(self.move_destination)
        self._absorb(ctl)

    async def bulk_copy(self) -> None:
        ctl = self._controller()
        await ctl.bulk_copy(self.move_destination)
        self._absorb(ctl)

    async def bulk_delete(self) -> None:
        ctl = self._controller()
        await ctl.bulk_delete()
        self._absorb(ctl)

    async def handle_upload(self, files: list[rx.UploadFile]) -> None:
        """Upload into the open folder."""
        self.uploading = True
        try:
            payload = []
            for file in files:
                content = await file.read()
                payload.append((file.filename, content, file.content_type or "application/octet-stream"))
            ctl = self._controller()
            await ctl.upload(payload)
            self._absorb(ctl)
        finally:
            self.uploading = False


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def folder_breadcrumb() -> rx.Component:
    return rx.hstack(
        rx.foreach(
            DocumentsState.crumbs,
            lambda c, i: rx.hstack(
                rx.cond(i > 0, rx.text("/", color="gray"), rx.fragment()),
                rx.link(c["label"], on_click=DocumentsState.navigate_folder(c["path"]), cursor="pointer"),
                spacing="1",
            ),
        ),
        spacing="1",
    )


def _tree_row(row: rx.Var) -> rx.Component:
    return rx.hstack(
        rx.cond(
            row["has_children"],
            rx.icon_button(
                rx.cond(row["expanded"], rx.icon("chevron-down", size=12), rx.icon("chevron-right", size=12)),
                size="1",
                variant="ghost",
                on_click=DocumentsState.toggle_folder(row["path"]),
            ),
            rx.box(width="24px"),
        ),
        rx.icon("folder", size=14),
        rx.text(row["name"], size="2", weight=rx.cond(row["active"], "bold", "regular")),
        rx.spacer(),
        rx.badge(row["count"], variant="soft"),
        padding_left=row["indent"],
        padding_y="1",
        width="100%",
        cursor="pointer",
        background=rx.cond(row["active"], "var(--accent-3)", "transparent"),
        on_click=DocumentsState.navigate_folder(row["path"]),
    )


def folder_tree_panel() -> rx.Component:
    return rx.vstack(
        rx.hstack(
            rx.icon("house", size=14),
            rx.text("All Documents", size="2", weight="bold"),
            rx.spacer(),
            rx.badge(DocumentsState.root_count, variant="soft"),
            width="100%",
            cursor="pointer",
            on_click=DocumentsState.navigate_folder("/"),
        ),
        rx.cond(
            DocumentsState.has_folders,
            rx.foreach(DocumentsState.tree_rows, _tree_row),
            rx.text("No folders yet", size="1", color="gray"),
        ),
        rx.divider(),
        rx.hstack(
            rx.input(
                placeholder="New folder name",
                value=DocumentsState.new_folder_name,
                on_change=DocumentsState.update_new_folder_name,
                size="1",
            ),
            rx.button("Create", size="1", on_click=DocumentsState.create_folder),
            spacing="2",
        ),
        rx.cond(
            DocumentsState.folder_error != "",
            rx.text(DocumentsState.folder_error, size="1", color="red"),
            rx.fragment(),
        ),
        rx.hstack(
            rx.button(
                "Delete folder",
                size="1",
                variant="outline",
                color_scheme="red",
                disabled=DocumentsState.cursor == "/",
                on_click=DocumentsState.delete_folder(DocumentsState.cursor),
            ),
            rx.button("Clean up", size="1", variant="outline", on_click=DocumentsState.cleanup_folders),
            spacing="2",
        ),
        rx.hstack(
            rx.button("Rename to name", size="1", variant="outline",
                      disabled=DocumentsState.cursor == "/", on_click=DocumentsState.rename_open_folder),
            rx.button("Move to destination", size="1", variant="outline",
                      disabled=DocumentsState.cursor == "/", on_click=DocumentsState.move_open_folder),
            spacing="2",
        ),
        width="260px",
        min_width="260px",
        spacing="1",
        padding_right="12px",
        border_right="1px solid var(--gray-5)",
    )


def bulk_bar() -> rx.Component:
    return rx.cond(
        DocumentsState.selected_count > 0,
        rx.hstack(
            rx.text(DocumentsState.selected_count, " selected", size="2"),
            rx.input(
                placeholder="Destination folder (blank = root)",
                value=DocumentsState.move_destination,
                on_change=DocumentsState.update_move_destination,
                size="1",
                width="240px",
            ),
            rx.button("Move", size="1", on_click=DocumentsState.bulk_move),
            rx.button("Copy", size="1", variant="outline", on_click=DocumentsState.bulk_copy),
            rx.button("Download", size="1", variant="outline", on_click=DocumentsState.bulk_download),
            rx.button("Delete", size="1", color_scheme="red", on_click=DocumentsState.bulk_delete),
            rx.button("Clear", size="1", variant="ghost", on_click=DocumentsState.clear_selection),
            spacing="2",
            align="center",
            padding="8px",
            border_radius="6px",
            background="var(--gray-3)",
        ),
        rx.fragment(),
    )


def _document_row(doc: rx.Var) -> rx.Component:
    return rx.table.row(
        rx.table.cell(
            rx.checkbox(
                checked=DocumentsState.selected.contains(doc["id"]),
                on_change=lambda _checked: DocumentsState.toggle_select(doc["id"]),
            )
        ),
        rx.table.cell(doc["name"]),
        rx.table.cell(doc["size"]),
        rx.table.cell(doc["file_type"]),
        rx.table.cell(doc["tags"]),
        rx.table.cell(
            rx.hstack(
                rx.icon_button(rx.icon("folder-input", size=14), size="1", variant="ghost",
                               on_click=DocumentsState.move_document(doc["id"])),
                rx.icon_button(rx.icon("copy", size=14), size="1", variant="ghost",
                               on_click=DocumentsState.copy_document(doc["id"])),
                rx.icon_button(rx.icon("pencil", size=14), size="1", variant="ghost",
                               on_click=DocumentsState.start_rename(doc["id"], doc["name"])),
                rx.icon_button(rx.icon("download", size=14), size="1", variant="ghost",
                               on_click=DocumentsState.download_document(doc["id"])),
                rx.icon_button(rx.icon("sparkles", size=14), size="1", variant="ghost",
                               on_click=DocumentsState.summarize(doc["id"])),
                rx.icon_button(rx.icon("trash-2", size=14), size="1", variant="ghost", color_scheme="red",
                               on_click=DocumentsState.delete_document(doc["id"])),
                spacing="1",
            )
        ),
    )


def documents_listing() -> rx.Component:
    return rx.vstack(
        folder_breadcrumb(),
        rx.hstack(
            rx.input(placeholder="Search documents...", on_change=DocumentsState.set_search, width="300px"),
            rx.select(["all", "pdf", "word", "text", "image"], value=DocumentsState.file_type,
                      on_change=DocumentsState.choose_file_type),
            rx.select(["newest", "oldest", "name", "size"], value=DocumentsState.sort_by,
                      on_change=DocumentsState.choose_sort),
            rx.input(
                placeholder="Move/copy destination",
                value=DocumentsState.move_destination,
                on_change=DocumentsState.update_move_destination,
                width="220px",
            ),
            spacing="3",
        ),
        bulk_bar(),
        rx.cond(
            DocumentsState.rename_target != "",
            rx.hstack(
                rx.input(value=DocumentsState.rename_value, on_change=DocumentsState.update_rename_value),
                rx.button("Rename", size="1", on_click=DocumentsState.rename_document),
                spacing="2",
            ),
            rx.fragment(),
        ),
        rx.cond(
            DocumentsState.visible_rows.length() > 0,
            rx.table.root(
                rx.table.header(
                    rx.table.row(
                        rx.table.column_header_cell(""),
                        rx.table.column_header_cell("Name"),
                        rx.table.column_header_cell("Size"),
                        rx.table.column_header_cell("Type"),
                        rx.table.column_header_cell("Tags"),
                        rx.table.column_header_cell("Actions"),
                    ),
                ),
                rx.table.body(rx.foreach(DocumentsState.visible_rows, _document_row)),
                width="100%",
            ),
            rx.text("No documents in this folder.", color="gray"),
        ),
        rx.cond(
            DocumentsState.summary_text != "",
            rx.callout(DocumentsState.summary_text, icon="sparkles"),
            rx.fragment(),
        ),
        rx.box(
            rx.upload(
                rx.text("Drag & drop files here or click to browse"),
                id="documents_upload",
                border="1px dashed",
                padding="24px",
                text_align="center",
            ),
            rx.button(
                "Upload",
                on_click=DocumentsState.handle_upload(rx.upload_files(upload_id="documents_upload")),
                loading=DocumentsState.uploading,
                margin_top="8px",
            ),
            width="100%",
        ),
        spacing="3",
        flex="1",
        padding_left="12px",
    )


def documents_view() -> rx.Component:
    return rx.box(
        rx.heading("Documents", size="6", margin_bottom="12px"),
        rx.hstack(
            folder_tree_panel(),
            documents_listing(),
            align="start",
            width="100%",
        ),
    )


def documents_page() -> rx.Component:
    return app_layout(documents_view(), DocumentsState.toasts, DocumentsState.dismiss_toast)
