"""Unit tests for lexdesk.documents.view — cursor, expansion, visible lists."""

from datetime import datetime

import pytest

from lexdesk.documents.models import DocumentRecord
from lexdesk.documents.tree import build_folder_tree
from lexdesk.documents.view import (
    FolderView,
    breadcrumbs,
    count_in,
    filter_documents,
    folder_rows,
    sort_documents,
    visible_children,
    visible_documents,
)


def _docs(*pairs):
    return [DocumentRecord(id=i, folder_path=f, original_filename=f"d{i}.pdf") for i, f in pairs]


class TestVisibleDocuments:
    def test_root_inclusivity(self):
        docs = _docs((1, None), (2, ""), (3, "/"), (4, "/A"))
        assert [d.id for d in visible_documents(docs, "/")] == [1, 2, 3]

    @pytest.mark.parametrize("cursor", [None, "", "/"])
    def test_root_cursor_spellings(self, cursor):
        docs = _docs((1, None), (2, "/A"))
        assert [d.id for d in visible_documents(docs, cursor)] == [1]

    def test_direct_children_only(self):
        docs = _docs((1, "/A"), (2, "/A/B"), (3, "/A/"))
        assert [d.id for d in visible_documents(docs, "/A")] == [1, 3]

    def test_deleted_folder_shows_nothing(self):
        assert visible_documents(_docs((1, "/A")), "/Gone") == []

    def test_count_in(self):
        docs = _docs((1, "/A"), (2, "/A"), (3, None))
        assert count_in(docs, "/A") == 2
        assert count_in(docs, "") == 1


class TestBreadcrumbs:
    def test_root(self):
        assert breadcrumbs("/") == [("All Documents", "/")]

    def test_nested(self):
        assert breadcrumbs("/Contracts/2024") == [
            ("All Documents", "/"),
            ("Contracts", "/Contracts"),
            ("2024", "/Contracts/2024"),
        ]


class TestSortAndFilter:
    def _records(self):
        return [
            DocumentRecord(id=1, original_filename="b.pdf", file_size=10,
                           created_at=datetime(2024, 1, 1), file_type="application/pdf"),
            DocumentRecord(id=2, original_filename="A.docx", file_size=30,
                           created_at=datetime(2024, 3, 1), file_type="application/msword", tags="nda"),
            DocumentRecord(id=3, original_filename="c.txt", file_size=20, file_type="text/plain"),
        ]

    def test_sort_name(self):
        assert [d.id for d in sort_documents(self._records(), "name")] == [2, 1, 3]

    def test_sort_size_desc(self):
        assert [d.id for d in sort_documents(self._records(), "size")] == [2, 3, 1]

    def test_sort_dates_undated_last(self):
        assert [d.id for d in sort_documents(self._records(), "newest")] == [2, 1, 3]
        assert [d.id for d in sort_documents(self._records(), "oldest")] == [1, 2, 3]

    def test_filter_search_and_type(self):
        docs = self._records()
        assert [d.id for d in filter_documents(docs, "/", search="nda")] == [2]
        assert [d.id for d in filter_documents(docs, "/", file_type="pdf")] == [1]
        assert len(filter_documents(docs, "/", file_type="all")) == 3

    def test_filter_respects_cursor(self):
        assert filter_documents(self._records(), "/A") == []


class TestFolderView:
    def test_defaults(self):
        view = FolderView()
        assert view.cursor == "/"
        assert view.is_expanded("/")
        assert view.selected == []

    def test_set_cursor_normalizes(self):
        view = FolderView()
        assert view.set_cursor("Contracts/") == "/Contracts"
        view.reset_cursor()
        assert view.cursor == "/"

    def test_select_folder_auto_expands_parents_with_children(self):
        tree = build_folder_tree(["/A", "/A/B", "/C"])
        view = FolderView()
        view.select_folder("/A", tree)
        assert view.is_expanded("/A")
        view.select_folder("/C", tree)
        assert not view.is_expanded("/C")

    def test_select_does_not_expand_ancestors(self):
        tree = build_folder_tree(["/A", "/A/B", "/A/B/C"])
        view = FolderView()
        view.select_folder("/A/B", tree)
        assert view.is_expanded("/A/B")
        assert not view.is_expanded("/A")

    def test_toggle_expanded(self):
        view = FolderView()
        assert view.toggle_expanded("/A") is True
        assert view.toggle_expanded("/A") is False

    def test_selection(self):
        view = FolderView(selected=[1, 1, 2])
        assert view.selected == [1, 2]
        assert view.toggle_selection(3) is True
        assert view.toggle_selection(1) is False
        assert view.selected == [2, 3]
        view.clear_selection()
        assert view.selected == []

    def test_children_of_cursor(self):
        tree = build_folder_tree(["/A", "/A/B", "/C"])
        view = FolderView("/A")
        assert view.children(tree) == ["/A/B"]
        assert visible_children(tree, "/") == ["/A", "/C"]


class TestFolderRows:
    def test_collapsed_levels_hidden(self):
        tree = build_folder_tree(["/b", "/A", "/A/x"])
        rows = folder_rows(tree, _docs((1, "/A"), (2, "/A")), FolderView())
        assert [r["path"] for r in rows] == ["/A", "/b"]
        assert rows[0]["count"] == 2
        assert rows[0]["has_children"] is True
        assert rows[0]["expanded"] is False

    def test_expanded_levels_shown(self):
        tree = build_folder_tree(["/A", "/A/x"])
        rows = folder_rows(tree, [], FolderView("/A/x", expanded=["/A"]))
        assert [(r["path"], r["depth"]) for r in rows] == [("/A", 0), ("/A/x", 1)]
        assert rows[1]["active"] is True
        assert rows[1]["indent"] == "28px"
