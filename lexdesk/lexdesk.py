"""
LexDesk — Main Reflex application entry point.

Boot sequence:
    1. boot_runtime()  — lexdesk.yaml (defaults if invalid), logging, settings, API client
    2. Create rx.App() and register page routes
"""

import reflex as rx

from lexdesk.engine.runtime import boot_runtime
from lexdesk.pages.cases import CasesState, case_detail_page, cases_page
from lexdesk.pages.chat import ChatState, chat_page
from lexdesk.pages.documents import DocumentsState, documents_page

boot_runtime()

app = rx.App()

app.add_page(documents_page, route="/documents", title="LexDesk — Documents", on_load=DocumentsState.load)
app.add_page(chat_page, route="/chat", title="LexDesk — Chat", on_load=ChatState.load)
app.add_page(cases_page, route="/cases", title="LexDesk — Cases", on_load=CasesState.load)
app.add_page(case_detail_page, route="/cases/[case_id]", title="LexDesk — Case", on_load=CasesState.load_detail)
app.add_page(lambda: rx.fragment(), route="/", on_load=rx.redirect("/documents"))
