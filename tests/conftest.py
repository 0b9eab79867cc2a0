"""
LexDesk Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v

HTTP never leaves the process: ApiClient is given an httpx.MockTransport
backed by FakeBackend, a small in-memory stand-in for the practice API.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote

import httpx
import pytest

from lexdesk.engine.api import ApiClient
from lexdesk.engine.settings_store import SettingsStore


# ---------------------------------------------------------------------------
# Environment setup — reset module singletons between tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset global singletons between tests."""
    import lexdesk.engine.config as cfg_mod
    import lexdesk.engine.logging as log_mod
    import lexdesk.engine.runtime as rt_mod

    monkeypatch.delenv("LEXDESK_API_URL", raising=False)
    cfg_mod._config = None
    log_mod._global_logger = None
    rt_mod._runtime = None
    yield
    log_mod._global_logger = None
    rt_mod._runtime = None


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------

def doc(doc_id: int, folder: Optional[str] = "/", name: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Build a backend document payload."""
    data = {
        "id": doc_id,
        "original_filename": name or f"doc{doc_id}.pdf",
        "file_size": 1024 * doc_id,
        "file_type": "application/pdf",
        "folder_path": folder,
        "created_at": f"2024-01-{doc_id % 28 + 1:02d}T10:00:00",
    }
    data.update(extra)
    return data


class FakeBackend:
    """
    In-memory practice API: documents, folder paths, and canned responses.

    Canned responses (``respond``) take precedence over the built-in
    document/folder routes, so any endpoint can be made to fail.
    """

    def __init__(self, documents: Optional[List[Dict[str, Any]]] = None,
                 folders: Optional[List[str]] = None):
        self.documents: Dict[int, Dict[str, Any]] = {d["id"]: dict(d) for d in documents or []}
        self.folders: List[str] = list(folders or [])
        self.folders_wrapped = False
        self.calls: List[Tuple[str, str, Any]] = []
        self.queries: Dict[str, Dict[str, str]] = {}
        self._canned: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self._next_id = max(self.documents, default=0) + 100

    # -- setup helpers ---------------------------------------------------

    def seed(self, documents: Optional[List[Dict[str, Any]]] = None,
             folders: Optional[List[str]] = None) -> "FakeBackend":
        self.documents = {d["id"]: dict(d) for d in documents or []}
        self.folders = list(folders or [])
        self.calls.clear()
        return self

    def respond(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self._canned[(method.upper(), path)] = (status, body)

    def fail(self, method: str, path: str, status: int = 500, detail: str = "Internal error") -> None:
        self.respond(method, path, status, {"detail": detail})

    def calls_to(self, method: str, prefix: str = "") -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == method.upper() and c[1].startswith(prefix)]

    @property
    def mutation_calls(self) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] != "GET"]

    # -- transport -------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.raw_path.decode().split("?")[0]
        body = self._body(request)
        self.calls.append((method, path, body))
        if request.url.params:
            self.queries[path] = dict(request.url.params)

        if (method, path) in self._canned:
            status, payload = self._canned[(method, path)]
            return self._json(status, payload)
        return self._route(method, path, body, request)

    @staticmethod
    def _body(request: httpx.Request) -> Any:
        content = request.content
        if not content:
            return None
        if request.headers.get("content-type", "").startswith("application/json"):
            return json.loads(content)
        return content

    @staticmethod
    def _json(status: int, payload: Any) -> httpx.Response:
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    def _route(self, method: str, path: str, body: Any, request: httpx.Request) -> httpx.Response:
        if method == "GET" and path == "/api/documents":
            return self._json(200, list(self.documents.values()))
        if method == "GET" and path in ("/api/documents/folders", "/api/documents/folders/list"):
            folders = list(self.folders)
            return self._json(200, {"folders": folders} if self.folders_wrapped else folders)
        if method == "POST" and path == "/api/documents/folders":
            parent = (body.get("parent_folder") or "/").rstrip("/")
            new_path = f"{parent}/{body['folder_name']}"
            if new_path not in self.folders:
                self.folders.append(new_path)
            return self._json(200, {"folder_path": new_path})
        if method == "POST" and path == "/api/documents/folders/cleanup":
            used = {d.get("folder_path") for d in self.documents.values()}
            keep = [f for f in self.folders if f in used or any(u and u.startswith(f + "/") for u in used)]
            cleaned = len(self.folders) - len(keep)
            self.folders = keep
            return self._json(200, {"cleaned_count": cleaned})
        if method == "DELETE" and path.startswith("/api/documents/folders/"):
            target = unquote(path[len("/api/documents/folders/"):])
            self.folders = [f for f in self.folders if f != target and not f.startswith(target + "/")]
            return self._json(200, {"ok": True})
        if method == "POST" and path == "/api/documents/upload":
            return self._upload(request)
        if method == "POST" and path == "/api/documents/bulk/move":
            for doc_id in body["document_ids"]:
                self.documents[doc_id]["folder_path"] = body["destination_folder"]
            return self._json(200, {"moved": len(body["document_ids"])})
        if method == "POST" and path == "/api/documents/bulk/delete":
            for doc_id in body["document_ids"]:
                self.documents.pop(doc_id, None)
            return self._json(200, {"deleted": len(body["document_ids"])})

        m = re.fullmatch(r"/api/documents/(\d+)(/\w+)?", path)
        if m:
            return self._document_route(method, int(m.group(1)), m.group(2) or "", body)
        return self._json(404, {"detail": "Not Found"})

    def _document_route(self, method: str, doc_id: int, action: str, body: Any) -> httpx.Response:
        record = self.documents.get(doc_id)
        if record is None:
            return self._json(404, {"detail": "Document not found"})
        if method == "POST" and action == "/move":
            record["folder_path"] = body["destination_folder"]
            return self._json(200, record)
        if method == "POST" and action == "/copy":
            self._next_id += 1
            copy = dict(record, id=self._next_id, folder_path=body["destination_folder"])
            self.documents[copy["id"]] = copy
            return self._json(200, copy)
        if method == "PUT" and action == "/rename":
            record["original_filename"] = body["new_name"]
            return self._json(200, record)
        if method == "GET" and action == "/download":
            return httpx.Response(200, content=f"content of {record['original_filename']}".encode())
        if method == "POST" and action == "/summarize":
            return self._json(200, {"summary": record.get("summary")})
        if method == "DELETE" and action == "":
            del self.documents[doc_id]
            return self._json(200, None)
        return self._json(405, {"detail": "Method Not Allowed"})

    def _upload(self, request: httpx.Request) -> httpx.Response:
        raw = request.content.decode("latin-1")
        filename = re.search(r'filename="([^"]+)"', raw).group(1)
        folder = re.search(r'name="folder_path"\r\n\r\n(.*?)\r\n', raw).group(1)
        self._next_id += 1
        record = {
            "id": self._next_id,
            "original_filename": filename,
            "file_size": 1,
            "file_type": "text/plain",
            "folder_path": folder,
        }
        self.documents[record["id"]] = record
        return self._json(200, record)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings():
    """In-memory settings store."""
    return SettingsStore().load()


@pytest.fixture
def backend():
    """Empty fake backend; tests seed documents/folders directly."""
    return FakeBackend()


@pytest.fixture
def api(backend, settings):
    """ApiClient wired to the fake backend."""
    return ApiClient(
        base_url="http://testserver",
        settings=settings,
        transport=httpx.MockTransport(backend.handler),
    )


@pytest.fixture
def file_logger(tmp_path):
    """Initialize structured logging into a temp directory."""
    from lexdesk.engine.logging import init_logging

    return init_logging(str(tmp_path / "logs"))


@pytest.fixture
def make_doc():
    """Factory for backend document payloads."""
    return doc
