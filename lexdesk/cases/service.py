"""
LexDesk Cases — Case list filtering/sorting and the case detail fan-out.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from lexdesk.engine.api import ApiClient
from lexdesk.engine.errors import LexDeskRequestError

logger = logging.getLogger("lexdesk.cases.service")

CASE_SORT_ORDERS = ("newest", "oldest", "title")


class CaseRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    case_number: str = ""
    title: str = ""
    description: Optional[str] = None
    status: str = ""
    client_name: Optional[str] = None
    created_at: Optional[datetime] = None


class CaseDetail(BaseModel):
    """Everything the case page shows, loaded in one fan-out."""

    case: Dict[str, Any]
    documents: List[Any] = []
    participants: List[Any] = []
    events: List[Any] = []
    important_dates: List[Any] = []
    notes: List[Any] = []
    collaborators: List[Any] = []


def filter_cases(cases: List[CaseRecord], search: str = "", status: str = "") -> List[CaseRecord]:
    """Case-insensitive search on title, case number and client name; exact status match."""
    term = (search or "").strip().lower()

    def matches(case: CaseRecord) -> bool:
        if status and case.status != status:
            return False
        if not term:
            return True
        return any(term in (v or "").lower() for v in (case.title, case.case_number, case.client_name))

    return [c for c in cases if matches(c)]


def sort_cases(cases: List[CaseRecord], order: str = "newest") -> List[CaseRecord]:
    if order == "title":
        return sorted(cases, key=lambda c: c.title.lower())
    if order in ("newest", "oldest"):
        dated = [c for c in cases if c.created_at is not None]
        undated = [c for c in cases if c.created_at is None]
        dated.sort(key=lambda c: c.created_at.timestamp(), reverse=(order == "newest"))
        return dated + undated
    return list(cases)


def case_rows(raw: List[Dict[str, Any]], search: str = "", status: str = "all", order: str = "newest") -> List[Dict[str, Any]]:
    """Filter and sort serialized cases for the list page; "all" disables the status filter."""
    cases = [CaseRecord.model_validate(c) for c in raw]
    status = "" if status == "all" else status
    return [c.model_dump(mode="json") for c in sort_cases(filter_cases(cases, search, status), order)]


def case_statuses(raw: List[Dict[str, Any]]) -> List[str]:
    return ["all"] + sorted({c.get("status") or "" for c in raw} - {""})


async def fetch_cases(api: ApiClient) -> List[CaseRecord]:
    body = await api.get("/api/cases", default_error="Failed to fetch cases")
    cases: List[CaseRecord] = []
    for item in body or []:
        try:
            cases.append(CaseRecord.model_validate(item))
        except ValueError as e:
            logger.warning(f"Skipping malformed case entry: {e}")
    return cases


async def _collaborators(api: ApiClient, case_id: int) -> List[Any]:
    try:
        return await api.get(f"/api/cases/{case_id}/collaborators") or []
    except LexDeskRequestError as e:
        logger.debug(f"Collaborators unavailable for case {case_id}: {e.message}")
        return []


async def load_case_detail(api: ApiClient, case_id: int) -> CaseDetail:
    """
    Fetch the case and its six related lists concurrently.

    Collaborators degrade to []; any other failure fails the whole load.
    A 404 is re-raised as "Case not found".
    """
    try:
        case, documents, participants, events, dates, notes, collaborators = await asyncio.gather(
            api.get(f"/api/cases/{case_id}"),
            api.get("/api/documents", params={"case_id": case_id}),
            api.get(f"/api/cases/{case_id}/participants"),
            api.get(f"/api/cases/{case_id}/events"),
            api.get(f"/api/cases/{case_id}/important-dates"),
            api.get(f"/api/cases/{case_id}/notes"),
            _collaborators(api, case_id),
        )
    except LexDeskRequestError as e:
        if e.status_code == 404:
            raise LexDeskRequestError(
                "Case not found", status_code=404, endpoint=e.endpoint, action="load_case_detail"
            ) from e
        raise LexDeskRequestError(
            "Failed to load case data",
            status_code=e.status_code,
            endpoint=e.endpoint,
            action="load_case_detail",
        ) from e

    return CaseDetail(
        case=case or {},
        documents=documents or [],
        participants=participants or [],
        events=events or [],
        important_dates=dates or [],
        notes=notes or [],
        collaborators=collaborators or [],
    )
