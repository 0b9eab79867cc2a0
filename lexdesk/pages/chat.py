"""
LexDesk — Chat Page

Route: /chat
Purpose: Chat sessions sidebar (with client-side archiving) and the
message pane. Sending runs as a background event so Stop can cancel it.
"""

from typing import Dict

import reflex as rx

from lexdesk.chat.service import ChatMessage, ChatService
from lexdesk.components.layout import app_layout
from lexdesk.engine.runtime import get_runtime

# client token → service owning the in-flight exchange
_active: Dict[str, ChatService] = {}


class ChatState(rx.State):
    sessions: list[dict] = []
    current_session_id: str = ""
    messages: list[dict] = []
    draft: str = ""
    sending: bool = False
    show_archived: bool = False
    archived_ids: list[str] = []
    model: str = "default"
    models: list[str] = ["default"]
    toasts: list[dict] = []

    def _service(self) -> ChatService:
        runtime = get_runtime()
        service = ChatService(runtime.api, runtime.settings, runtime.new_toasts())
        service.current_session_id = self.current_session_id or None
        service.messages = [
            ChatMessage(
                id=m.get("id"),
                content=m["content"],
                is_user=m["is_user"],
                created_at=m.get("created_at") or "",
            )
            for m in self.messages
        ]
        return service

    def _absorb(self, service: ChatService) -> None:
        self.sessions = [
            {"id": s.id, "title": s.title, "message_count": s.message_count, "archived": s.id in service.archived_ids}
            for s in service.sessions
        ]
        self.archived_ids = list(service.archived_ids)
        self.current_session_id = service.current_session_id or ""
        self.messages = [m.to_dict() for m in service.messages]
        self.toasts = (self.toasts + service.toasts.to_list())[-5:]

    @rx.var
    def archived_count(self) -> int:
        return len(self.archived_ids)

    async def load(self) -> None:
        runtime = get_runtime()
        self.show_archived = runtime.settings.show_archived
        service = self._service()
        self.model = service.model
        self.models = [m["value"] for m in await service.load_models()]
        await service.list_sessions(self.show_archived)
        self._absorb(service)

    def update_draft(self, value: str) -> None:
        self.draft = value

    def choose_model(self, value: str) -> None:
        self._service().set_model(value)
        self.model = value

    def dismiss_toast(self, toast_id: str) -> None:
        self.toasts = [t for t in self.toasts if t["id"] != toast_id]

    def new_chat(self) -> None:
        self.current_session_id = ""
        self.messages = []

    async def toggle_show_archived(self) -> None:
        service = self._service()
        self.show_archived = not self.show_archived
        await service.set_show_archived(self.show_archived)
        self._absorb(service)

    async def toggle_archive(self, session_id: str) -> None:
        service = self._service()
        await service.toggle_archive(session_id)
        self._absorb(service)

    async def open_session(self, session_id: str) -> None:
        service = self._service()
        await service.load_messages(session_id)
        await service.list_sessions(self.show_archived)
        self._absorb(service)

    async def delete_session(self, session_id: str) -> None:
        service = self._service()
        await service.delete_session(session_id)
        self._absorb(service)

    @rx.event(background=True)
    async def send(self) -> None:
        async with self:
            content = self.draft.strip()
            if not content or self.sending:
                return
            service = self._service()
            token = self.router.session.client_token
            self.draft = ""
            self.sending = True
            self.messages = self.messages + [ChatMessage(content=content, is_user=True).to_dict()]

        _active[token] = service
        try:
            await service.send_message(content)
        finally:
            _active.pop(token, None)
            async with self:
                self.sending = False
                self._absorb(service)

    def stop(self) -> None:
        service = _active.get(self.router.session.client_token)
        if service is not None:
            service.stop()
            self.toasts = (self.toasts + service.toasts.to_list())[-5:]


def _session_item(session: rx.Var) -> rx.Component:
    return rx.hstack(
        rx.vstack(
            rx.text(session["title"], size="2", weight="medium", trim="both"),
            rx.text(session["message_count"], " messages", size="1", color="gray"),
            spacing="0",
            on_click=ChatState.open_session(session["id"]),
            cursor="pointer",
            flex="1",
        ),
        rx.icon_button(
            rx.cond(session["archived"], rx.icon("archive-restore", size=14), rx.icon("archive", size=14)),
            size="1",
            variant="ghost",
            on_click=ChatState.toggle_archive(session["id"]),
        ),
        rx.icon_button(
            rx.icon("trash-2", size=14),
            size="1",
            variant="ghost",
            color_scheme="red",
            on_click=ChatState.delete_session(session["id"]),
        ),
        width="100%",
        padding="6px",
        border_radius="6px",
        background=rx.cond(session["id"] == ChatState.current_session_id, "var(--accent-3)", "transparent"),
    )


def _message(msg: rx.Var) -> rx.Component:
    return rx.box(
        rx.text(msg["content"], size="2", white_space="pre-wrap"),
        align_self=rx.cond(msg["is_user"], "flex-end", "flex-start"),
        background=rx.cond(msg["is_user"], "var(--accent-9)", "var(--gray-3)"),
        color=rx.cond(msg["is_user"], "white", "inherit"),
        padding="8px 12px",
        border_radius="10px",
        max_width="70%",
    )


def chat_view() -> rx.Component:
    return rx.hstack(
        rx.vstack(
            rx.hstack(
                rx.button("New chat", size="1", on_click=ChatState.new_chat),
                rx.button(
                    rx.cond(ChatState.show_archived, "Hide archived", "Show archived"),
                    rx.badge(ChatState.archived_count),
                    size="1",
                    variant="outline",
                    on_click=ChatState.toggle_show_archived,
                ),
                spacing="2",
            ),
            rx.foreach(ChatState.sessions, _session_item),
            width="260px",
            min_width="260px",
            spacing="1",
            padding_right="12px",
            border_right="1px solid var(--gray-5)",
        ),
        rx.vstack(
            rx.vstack(
                rx.foreach(ChatState.messages, _message),
                width="100%",
                flex="1",
                overflow_y="auto",
                spacing="2",
            ),
            rx.hstack(
                rx.select(ChatState.models, value=ChatState.model, on_change=ChatState.choose_model, size="1"),
                rx.text_area(
                    value=ChatState.draft,
                    on_change=ChatState.update_draft,
                    placeholder="Ask about your documents...",
                    flex="1",
                ),
                rx.cond(
                    ChatState.sending,
                    rx.button("Stop", color_scheme="red", on_click=ChatState.stop),
                    rx.button("Send", on_click=ChatState.send),
                ),
                width="100%",
                align="end",
                spacing="2",
            ),
            flex="1",
            height="calc(100vh - 120px)",
            padding_left="12px",
        ),
        width="100%",
        align="start",
    )


def chat_page() -> rx.Component:
    return app_layout(chat_view(), ChatState.toasts, ChatState.dismiss_toast)
