"""Unit tests for lexdesk.engine.logging — FileLogger, entry builders, global logger."""

import json
from datetime import date, timedelta

import pytest

from lexdesk.engine import logging as log_mod
from lexdesk.engine.logging import (
    LOG_CATEGORIES,
    FileLogger,
    LogEntry,
    get_file_logger,
    init_logging,
    log,
    log_api_call,
    log_batch_result,
    log_mutation,
    shutdown_logging,
)


class TestLogEntry:
    def test_to_json(self):
        entry = LogEntry("folders", {"event": "create_folder", "target": "/A"})
        assert json.loads(entry.to_json()) == {"event": "create_folder", "target": "/A"}

    def test_non_serializable_values_stringified(self):
        entry = LogEntry("api", {"when": date(2024, 1, 2)})
        assert json.loads(entry.to_json())["when"] == "2024-01-02"


class TestFileLogger:
    def test_creates_category_dirs(self, tmp_path):
        FileLogger(str(tmp_path))
        for cat in LOG_CATEGORIES:
            assert (tmp_path / cat).is_dir()

    def test_write_appends_jsonl(self, tmp_path):
        fl = FileLogger(str(tmp_path))
        fl.write(LogEntry("documents", {"n": 1}))
        fl.write(LogEntry("documents", {"n": 2}))
        path = tmp_path / "documents" / f"{date.today().isoformat()}.jsonl"
        lines = path.read_text().strip().splitlines()
        assert [json.loads(line)["n"] for line in lines] == [1, 2]

    def test_unknown_category(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown log category"):
            FileLogger(str(tmp_path)).write(LogEntry("metrics", {}))

    def test_query_with_filters_and_limit(self, tmp_path):
        fl = FileLogger(str(tmp_path))
        for i in range(5):
            fl.write(LogEntry("api", {"i": i, "method": "GET" if i % 2 else "POST"}))
        assert [e["i"] for e in fl.query("api", filters={"method": "GET"})] == [1, 3]
        assert len(fl.query("api", limit=2)) == 2

    def test_query_reads_older_files(self, tmp_path):
        fl = FileLogger(str(tmp_path))
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        (tmp_path / "chat" / f"{yesterday}.jsonl").write_text('{"old": true}\n\nnot-json\n')
        assert fl.query("chat") == [{"old": True}]

    def test_query_missing_category(self, tmp_path):
        assert FileLogger(str(tmp_path)).query("nothing") == []


class TestBuilders:
    def test_api_call_success(self):
        entry = log_api_call("get", "/api/documents", 200, 12.3456)
        assert entry.category == "api"
        assert entry.data["method"] == "GET"
        assert entry.data["level"] == "INFO"
        assert entry.data["duration_ms"] == 12.35
        assert "error" not in entry.data

    def test_api_call_failure(self):
        entry = log_api_call("POST", "/x", None, 1.0, error="connect timeout")
        assert entry.data["level"] == "ERROR"
        assert entry.data["error"] == "connect timeout"
        assert "status_code" not in entry.data

    def test_mutation(self):
        entry = log_mutation("folders", "delete_folder", "/A", False, error="boom")
        assert entry.category == "folders"
        assert entry.data["event"] == "delete_folder"
        assert entry.data["success"] is False
        assert entry.data["level"] == "ERROR"

    def test_batch_result(self):
        entry = log_batch_result("move", 2, 1, [9], "/Archive")
        assert entry.category == "documents"
        assert entry.data["event"] == "bulk_move"
        assert entry.data["level"] == "WARNING"
        assert entry.data["failed_ids"] == [9]
        assert entry.data["destination"] == "/Archive"


class TestGlobalLogger:
    def test_log_without_init_is_dropped(self):
        assert get_file_logger() is None
        assert log(LogEntry("api", {})) is False

    def test_init_and_log(self, tmp_path):
        fl = init_logging(str(tmp_path), level="debug")
        assert get_file_logger() is fl
        assert log(log_mutation("documents", "move_document", 3, True, "/A")) is True
        assert fl.query("documents")[0]["target"] == 3

    def test_bad_category_is_not_raised(self, tmp_path):
        init_logging(str(tmp_path))
        assert log(LogEntry("bogus", {})) is False

    def test_shutdown(self, tmp_path):
        init_logging(str(tmp_path))
        shutdown_logging()
        assert log_mod._global_logger is None
