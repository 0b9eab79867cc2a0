"""Unit tests for lexdesk.documents.paths — folder path canonicalization."""

import pytest

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


class TestNormalize:
    @pytest.mark.parametrize("raw", [None, "", "   ", "/", "//"])
    def test_root_spellings(self, raw):
        assert normalize_folder_path(raw) == ROOT

    @pytest.mark.parametrize("raw, expected", [
        ("/Contracts", "/Contracts"),
        ("/Contracts/", "/Contracts"),
        ("Contracts", "/Contracts"),
        ("/A//B/", "/A/B"),
    ])
    def test_paths(self, raw, expected):
        assert normalize_folder_path(raw) == expected

    def test_split_segments(self):
        assert split_segments("/A/B/") == ["A", "B"]
        assert split_segments(None) == []

    def test_destination_blank_is_root(self):
        assert normalize_destination("") == "/"
        assert normalize_destination(None) == "/"

    def test_destination_gets_leading_slash(self):
        assert normalize_destination("sub") == "/sub"


class TestParentAndName:
    def test_parent_derivation(self):
        assert parent_path("/A/B/C") == "/A/B"
        assert parent_path("/A") == "/"
        assert parent_path("/") == "/"

    def test_folder_name(self):
        assert folder_name("/A/B/C") == "C"
        assert folder_name("/") == ""

    def test_join(self):
        assert join_path("/", "Contracts") == "/Contracts"
        assert join_path("/Contracts", " 2024 ") == "/Contracts/2024"
        assert join_path(None, "/x/") == "/x"


class TestRelations:
    def test_is_descendant(self):
        assert is_descendant("/A/B", "/A")
        assert is_descendant("/A", "/")
        assert not is_descendant("/A", "/A")
        assert not is_descendant("/AB", "/A")

    def test_rebase(self):
        assert rebase("/A", "/A", "/Z") == "/Z"
        assert rebase("/A/B/C", "/A", "/X/Y") == "/X/Y/C"

    def test_display(self):
        assert display_path("") == "Root"
        assert display_path("/Contracts/") == "/Contracts"
