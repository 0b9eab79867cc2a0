"""Unit tests for lexdesk.cases.service — filtering, sorting, detail fan-out."""

from datetime import datetime

import pytest

from lexdesk.cases.service import (
    CaseRecord,
    case_rows,
    case_statuses,
    fetch_cases,
    filter_cases,
    load_case_detail,
    sort_cases,
)
from lexdesk.engine.errors import LexDeskRequestError


def _cases():
    return [
        CaseRecord(id=1, case_number="LC-001", title="Tenancy dispute", status="open",
                   client_name="Amina Juma", created_at=datetime(2024, 2, 1)),
        CaseRecord(id=2, case_number="LC-002", title="Asset purchase", status="closed",
                   client_name="Baraka Ltd", created_at=datetime(2024, 6, 1)),
        CaseRecord(id=3, case_number="LC-003", title="employment claim", status="open"),
    ]


def _seed_case(backend, case_id=3):
    backend.respond("GET", f"/api/cases/{case_id}", 200, {"id": case_id, "title": "Tenancy"})
    backend.respond("GET", f"/api/cases/{case_id}/participants", 200, [{"name": "A"}])
    backend.respond("GET", f"/api/cases/{case_id}/events", 200, [])
    backend.respond("GET", f"/api/cases/{case_id}/important-dates", 200, [{"date": "2024-09-01"}])
    backend.respond("GET", f"/api/cases/{case_id}/notes", 200, [])
    backend.respond("GET", f"/api/cases/{case_id}/collaborators", 200, [{"user_id": 8}])


class TestFilterAndSort:
    def test_search_title_number_client(self):
        assert [c.id for c in filter_cases(_cases(), "tenancy")] == [1]
        assert [c.id for c in filter_cases(_cases(), "lc-002")] == [2]
        assert [c.id for c in filter_cases(_cases(), "baraka")] == [2]

    def test_status(self):
        assert [c.id for c in filter_cases(_cases(), status="open")] == [1, 3]
        assert [c.id for c in filter_cases(_cases(), "claim", status="closed")] == []

    def test_sort(self):
        assert [c.id for c in sort_cases(_cases(), "newest")] == [2, 1, 3]
        assert [c.id for c in sort_cases(_cases(), "oldest")] == [1, 2, 3]
        assert [c.id for c in sort_cases(_cases(), "title")] == [2, 3, 1]
        assert [c.id for c in sort_cases(_cases(), "other")] == [1, 2, 3]


class TestCaseRows:
    def _raw(self):
        return [c.model_dump(mode="json") for c in _cases()]

    def test_all_status_disables_filter(self):
        assert [r["id"] for r in case_rows(self._raw(), status="all")] == [2, 1, 3]

    def test_search_status_and_order(self):
        rows = case_rows(self._raw(), search="lc-00", status="open", order="oldest")
        assert [r["id"] for r in rows] == [1, 3]
        assert rows[0]["created_at"] == "2024-02-01T00:00:00"

    def test_statuses(self):
        assert case_statuses(self._raw()) == ["all", "closed", "open"]
        assert case_statuses([]) == ["all"]


class TestFetchCases:
    @pytest.mark.asyncio
    async def test_skips_malformed(self, api, backend):
        backend.respond("GET", "/api/cases", 200, [{"id": 1, "title": "A"}, {"title": "no id"}])
        assert [c.id for c in await fetch_cases(api)] == [1]


class TestLoadCaseDetail:
    @pytest.mark.asyncio
    async def test_fan_out(self, api, backend, make_doc):
        backend.seed([make_doc(1)])
        _seed_case(backend)
        detail = await load_case_detail(api, 3)
        assert detail.case["title"] == "Tenancy"
        assert [d["id"] for d in detail.documents] == [1]
        assert detail.participants == [{"name": "A"}]
        assert detail.important_dates == [{"date": "2024-09-01"}]
        assert detail.collaborators == [{"user_id": 8}]
        assert len(backend.calls) == 7

    @pytest.mark.asyncio
    async def test_documents_filtered_by_case(self, api, backend):
        _seed_case(backend)
        await load_case_detail(api, 3)
        assert backend.queries["/api/documents"] == {"case_id": "3"}

    @pytest.mark.asyncio
    async def test_collaborators_failure_degrades(self, api, backend):
        _seed_case(backend)
        backend.fail("GET", "/api/cases/3/collaborators", 403, "Forbidden")
        detail = await load_case_detail(api, 3)
        assert detail.collaborators == []

    @pytest.mark.asyncio
    async def test_not_found(self, api, backend):
        _seed_case(backend)
        backend.fail("GET", "/api/cases/3", 404, "Not Found")
        with pytest.raises(LexDeskRequestError, match="Case not found") as exc:
            await load_case_detail(api, 3)
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_other_failure_fails_whole_load(self, api, backend):
        _seed_case(backend)
        backend.fail("GET", "/api/cases/3/notes", 500)
        with pytest.raises(LexDeskRequestError, match="Failed to load case data"):
            await load_case_detail(api, 3)
