"""
LexDesk — Cases Pages

Routes:
  /cases            → searchable, sortable case list
  /cases/[case_id]  → case detail (case, documents, participants, events,
                      important dates, notes, collaborators)

The detail page loads all of its lists in one concurrent fan-out.
"""

from typing import Any, Dict, List

import reflex as rx

from lexdesk.cases.service import (
    CASE_SORT_ORDERS,
    case_rows,
    case_statuses,
    fetch_cases,
    load_case_detail,
)
from lexdesk.components.layout import app_layout
from lexdesk.engine.errors import LexDeskError
from lexdesk.engine.runtime import get_runtime

MAX_TOASTS = 5


class CasesState(rx.State):
    """State for the case list and case detail pages."""

    raw_cases: list[dict] = []
    search_query: str = ""
    status_filter: str = "all"
    sort_order: str = "newest"

    case: dict[str, Any] = {}
    case_documents: list[dict] = []
    participants: list[dict] = []
    events: list[dict] = []
    important_dates: list[dict] = []
    notes: list[dict] = []
    collaborators: list[dict] = []
    detail_error: str = ""

    loading: bool = False
    toasts: list[dict] = []

    @rx.var
    def visible_cases(self) -> List[Dict[str, Any]]:
        return case_rows(self.raw_cases, self.search_query, self.status_filter, self.sort_order)

    @rx.var
    def statuses(self) -> List[str]:
        return case_statuses(self.raw_cases)

    async def load(self):
        self.loading = True
        yield
        toasts = get_runtime().new_toasts()
        try:
            cases = await fetch_cases(get_runtime().api)
            self.raw_cases = [c.model_dump(mode="json") for c in cases]
        except LexDeskError as e:
            toasts.error(e.message)
        finally:
            self.loading = False
        self.toasts = (self.toasts + toasts.to_list())[-MAX_TOASTS:]

    async def load_detail(self):
        self.loading = True
        self.detail_error = ""
        yield
        raw_id = self.router.page.params.get("case_id", "")
        try:
            detail = await load_case_detail(get_runtime().api, int(raw_id))
        except ValueError:
            self.detail_error = "Case not found"
        except LexDeskError as e:
            self.detail_error = e.message
        else:
            self.case = detail.case
            self.case_documents = _dicts(detail.documents)
            self.participants = _dicts(detail.participants)
            self.events = _dicts(detail.events)
            self.important_dates = _dicts(detail.important_dates)
            self.notes = _dicts(detail.notes)
            self.collaborators = _dicts(detail.collaborators)
        finally:
            self.loading = False

    def set_search(self, value: str) -> None:
        self.search_query = value

    def choose_status(self, value: str) -> None:
        self.status_filter = value

    def choose_sort(self, value: str) -> None:
        self.sort_order = value

    def dismiss_toast(self, toast_id: str) -> None:
        self.toasts = [t for t in self.toasts if t["id"] != toast_id]


def _dicts(items: List[Any]) -> List[Dict[str, Any]]:
    return [i for i in items if isinstance(i, dict)]


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

def _case_row(case: rx.Var) -> rx.Component:
    return rx.table.row(
        rx.table.cell(rx.link(case["case_number"], href=f"/cases/{case['id']}")),
        rx.table.cell(case["title"]),
        rx.table.cell(case["client_name"]),
        rx.table.cell(rx.badge(case["status"], variant="soft")),
    )


def cases_view() -> rx.Component:
    return rx.vstack(
        rx.heading("Cases", size="6"),
        rx.hstack(
            rx.input(placeholder="Search cases...", on_change=CasesState.set_search, width="300px"),
            rx.select(CasesState.statuses, value=CasesState.status_filter, on_change=CasesState.choose_status),
            rx.select(list(CASE_SORT_ORDERS), value=CasesState.sort_order, on_change=CasesState.choose_sort),
            spacing="3",
        ),
        rx.cond(
            CasesState.loading,
            rx.spinner(),
            rx.cond(
                CasesState.visible_cases.length() > 0,
                rx.table.root(
                    rx.table.header(
                        rx.table.row(
                            rx.table.column_header_cell("Number"),
                            rx.table.column_header_cell("Title"),
                            rx.table.column_header_cell("Client"),
                            rx.table.column_header_cell("Status"),
                        ),
                    ),
                    rx.table.body(rx.foreach(CasesState.visible_cases, _case_row)),
                    width="100%",
                ),
                rx.text("No cases found.", color="gray"),
            ),
        ),
        spacing="3",
        width="100%",
    )


def _section(title: str, items: rx.Var, label_key: str) -> rx.Component:
    return rx.vstack(
        rx.heading(title, size="3"),
        rx.cond(
            items.length() > 0,
            rx.foreach(items, lambda item: rx.text(item[label_key], size="2")),
            rx.text("None", size="1", color="gray"),
        ),
        spacing="1",
        align="start",
    )


def case_detail_view() -> rx.Component:
    return rx.cond(
        CasesState.detail_error != "",
        rx.callout(CasesState.detail_error, icon="triangle-alert", color_scheme="red"),
        rx.vstack(
            rx.link("← All cases", href="/cases", size="2"),
            rx.heading(CasesState.case["title"], size="6"),
            rx.text(CasesState.case["case_number"], " · ", CasesState.case["status"], color="gray"),
            rx.text(CasesState.case["description"], size="2"),
            rx.grid(
                _section("Documents", CasesState.case_documents, "original_filename"),
                _section("Participants", CasesState.participants, "name"),
                _section("Events", CasesState.events, "title"),
                _section("Important dates", CasesState.important_dates, "title"),
                _section("Notes", CasesState.notes, "content"),
                _section("Collaborators", CasesState.collaborators, "email"),
                columns="2",
                spacing="4",
                width="100%",
            ),
            spacing="3",
            width="100%",
        ),
    )


def cases_page() -> rx.Component:
    return app_layout(cases_view(), CasesState.toasts, CasesState.dismiss_toast)


def case_detail_page() -> rx.Component:
    return app_layout(case_detail_view(), CasesState.toasts, CasesState.dismiss_toast)
