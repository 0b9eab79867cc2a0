"""Unit tests for lexdesk.engine.errors — Error hierarchy & message extraction."""

import json
import pytest

from lexdesk.engine.errors import (
    LexDeskBatchError,
    LexDeskConfigError,
    LexDeskError,
    LexDeskRequestError,
    LexDeskSessionError,
    LexDeskValidationError,
    format_api_error,
)


class TestLexDeskError:
    """Base error class tests."""

    def test_basic_creation(self):
        err = LexDeskError("something broke")
        assert err.message == "something broke"
        assert str(err) == "something broke"
        assert err.error_type == "LexDeskError"
        assert err.action is None

    def test_context_kept(self):
        err = LexDeskError("fail", action="move_document", doc_id=4)
        assert err.action == "move_document"
        assert err.context["doc_id"] == 4

    def test_to_dict(self):
        err = LexDeskError("fail", action="create_folder", path="/A")
        d = err.to_dict()
        assert d["error_type"] == "LexDeskError"
        assert d["message"] == "fail"
        assert d["action"] == "create_folder"
        assert d["context"] == {"path": "/A"}
        assert "timestamp" in d

    def test_to_json(self):
        parsed = json.loads(LexDeskError("fail").to_json())
        assert parsed["error_type"] == "LexDeskError"
        assert parsed["message"] == "fail"

    def test_repr(self):
        r = repr(LexDeskError("fail", action="delete_folder"))
        assert "LexDeskError: fail" in r
        assert "action=delete_folder" in r


class TestSubclasses:
    def test_all_inherit_from_base(self):
        for cls in (LexDeskValidationError, LexDeskRequestError, LexDeskSessionError,
                    LexDeskBatchError, LexDeskConfigError):
            assert issubclass(cls, LexDeskError)

    def test_session_is_request_error(self):
        assert issubclass(LexDeskSessionError, LexDeskRequestError)

    def test_validation_field(self):
        err = LexDeskValidationError("Folder name is required", field="folder_name")
        assert err.field == "folder_name"
        assert err.to_dict()["field"] == "folder_name"

    def test_request_fields(self):
        err = LexDeskRequestError("nope", status_code=409, endpoint="/api/documents/1/move",
                                  response_body={"detail": "nope"})
        assert err.status_code == 409
        assert err.endpoint == "/api/documents/1/move"
        assert err.response_body == {"detail": "nope"}
        d = err.to_dict()
        assert d["status_code"] == 409
        assert d["endpoint"] == "/api/documents/1/move"

    def test_batch_fields(self):
        err = LexDeskBatchError("Moved 2, failed to move 1", succeeded=2, failed=1, failed_ids=[7])
        assert err.succeeded == 2
        assert err.failed == 1
        assert err.failed_ids == [7]
        assert err.to_dict()["failed_ids"] == [7]

    def test_batch_defaults(self):
        err = LexDeskBatchError("x")
        assert err.succeeded == 0
        assert err.failed == 0
        assert err.failed_ids == []


class TestFormatApiError:
    def test_string_detail(self):
        assert format_api_error({"detail": "Folder exists"}) == "Folder exists"

    def test_validation_list(self):
        body = {"detail": [
            {"loc": ["body", "folder_name"], "msg": "field required"},
            {"loc": ["body", "parent_folder"], "msg": "bad path"},
        ]}
        assert format_api_error(body) == "body.folder_name: field required; body.parent_folder: bad path"

    def test_validation_list_missing_parts(self):
        assert format_api_error({"detail": [{}]}) == "field: Invalid value"

    def test_dict_detail_is_json(self):
        assert json.loads(format_api_error({"detail": {"code": 3}})) == {"code": 3}

    def test_message_fallback(self):
        assert format_api_error({"message": "Server says no"}) == "Server says no"

    def test_plain_text_body(self):
        assert format_api_error("  Bad Gateway \n") == "Bad Gateway"

    @pytest.mark.parametrize("body", [None, {}, [], 42, {"detail": []}, ""])
    def test_default(self, body):
        assert format_api_error(body, "Failed to move document") == "Failed to move document"
