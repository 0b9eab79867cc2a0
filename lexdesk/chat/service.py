"""
LexDesk Chat Service — Chat sessions, message exchange and cancellation.

Sessions live on the backend; which sessions are archived is a purely
client-side list kept in the SettingsStore. The one cancellable request in
the app is the in-flight chat exchange (see ChatService.stop).
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from lexdesk.engine.api import ApiClient
from lexdesk.engine.errors import LexDeskError, LexDeskRequestError
from lexdesk.engine.logging import log, log_mutation
from lexdesk.engine.settings_store import CHAT_MODEL, SettingsStore
from lexdesk.ui.toast import ToastQueue

logger = logging.getLogger("lexdesk.chat.service")

DEFAULT_MODEL = "default"

_STATUS_MESSAGES = {
    403: "You do not have permission to access this document.",
    404: "Document not found. Please refresh and try again.",
    500: "Service is temporarily unavailable. Please try again later.",
}
_SEND_FAILED = "Failed to send message. Please try again."


def _session_id(body: Any, default_error: str) -> str:
    """Pull the new session id out of a create response."""
    if not isinstance(body, dict) or body.get("id") is None:
        raise LexDeskRequestError(default_error, endpoint="/api/chat/sessions", response_body=body)
    return str(body["id"])


@dataclass
class ChatSession:
    id: str
    title: str
    created_at: Optional[str] = None
    message_count: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ChatSession":
        sid = str(data.get("id"))
        return cls(
            id=sid,
            title=data.get("session_name") or f"Chat {sid}",
            created_at=data.get("created_at"),
            message_count=len(data.get("messages") or []),
        )


@dataclass
class ChatMessage:
    content: str
    is_user: bool
    id: Optional[Any] = None
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ChatMessage":
        return cls(
            id=data.get("id"),
            content=data.get("content") or "",
            is_user=data.get("message_type") == "user",
            created_at=data.get("created_at") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "is_user": self.is_user,
            "created_at": self.created_at,
        }


def generate_session_title(text: str, now: Optional[datetime] = None) -> str:
    """
    First eight words of *text*, whitespace collapsed, first letter
    capitalized, cut to 40 characters with an ellipsis.
    """
    cleaned = re.sub(r"\s+", " ", text or "").strip()
    if not cleaned:
        now = now or datetime.now()
        return f"Chat {now.strftime('%H:%M:%S')}"
    short = " ".join(cleaned.split(" ")[:8])
    capped = short[0].upper() + short[1:]
    return capped[:39] + "…" if len(capped) > 40 else capped


def initial_session_name(content: str, document_name: Optional[str] = None,
                         now: Optional[datetime] = None) -> str:
    """Name given to a session created on the first message."""
    if document_name:
        return document_name
    if content:
        return f"{content[:30]}…" if len(content) > 30 else content
    now = now or datetime.now()
    return f"Chat {now.strftime('%Y-%m-%d %H:%M')}"


def chat_error_message(error: LexDeskError) -> str:
    status = getattr(error, "status_code", None)
    return _STATUS_MESSAGES.get(status, _SEND_FAILED)


def response_content(body: Any) -> str:
    """query-documents answers in ``response``; session messages in ``content``."""
    if not isinstance(body, dict):
        return body if isinstance(body, str) else ""
    return body.get("response") or body.get("content") or body.get("message") or ""


class ChatService:
    """
    Backing logic of the Chat page.

    Holds the session list, the open session's messages and the handle of
    the running exchange so the user can stop it.
    """

    def __init__(
        self,
        api: ApiClient,
        settings: SettingsStore,
        toasts: Optional[ToastQueue] = None,
    ):
        self._api = api
        self._settings = settings
        self.toasts = toasts or ToastQueue()
        self.sessions: List[ChatSession] = []
        self.archived_ids: List[str] = []
        self.current_session_id: Optional[str] = None
        self.messages: List[ChatMessage] = []
        self.models: List[Dict[str, str]] = [{"value": DEFAULT_MODEL, "label": "Default"}]
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def sending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def archived_count(self) -> int:
        return len(self.archived_ids)

    # -------------------------------------------------------------------
    # Models
    # -------------------------------------------------------------------

    @property
    def model(self) -> str:
        return self._settings.get(CHAT_MODEL) or DEFAULT_MODEL

    def set_model(self, model: str) -> None:
        self._settings.set(CHAT_MODEL, model or DEFAULT_MODEL)

    async def load_models(self) -> List[Dict[str, str]]:
        """Backend model names, behind the "default" entry. Keeps default only on failure."""
        try:
            body = await self._api.get("/api/chat/models")
        except LexDeskError as e:
            logger.warning(f"Could not load chat models: {e.message}")
            return self.models
        items = body.get("models", []) if isinstance(body, dict) else []
        names = [m["name"] for m in items if isinstance(m, dict) and m.get("name")]
        if names:
            self.models = [{"value": DEFAULT_MODEL, "label": "Default"}] + [
                {"value": n, "label": n} for n in names
            ]
        return self.models

    # -------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------

    async def list_sessions(self, show_archived: Optional[bool] = None) -> List[ChatSession]:
        """
        Fetch sessions, drop archived ids the server no longer knows
        (persisting the pruned list) and hide archived sessions unless
        *show_archived*.
        """
        if show_archived is None:
            show_archived = self._settings.show_archived
        try:
            body = await self._api.get("/api/chat/sessions", default_error="Failed to load chats")
        except LexDeskError as e:
            logger.error(f"Error fetching chat sessions: {e.message}")
            return self.sessions

        sessions = [ChatSession.from_api(s) for s in (body or []) if isinstance(s, dict)]
        known = {s.id for s in sessions}
        stored = self._settings.archived_sessions()
        valid = [sid for sid in stored if sid in known]
        if len(valid) != len(stored):
            logger.info(f"Pruned {len(stored) - len(valid)} stale archived session id(s)")
            self._settings.set_archived_sessions(valid)

        self.archived_ids = valid
        self.sessions = [s for s in sessions if show_archived or s.id not in valid]
        return self.sessions

    async def set_show_archived(self, value: bool) -> List[ChatSession]:
        self._settings.show_archived = value
        return await self.list_sessions(value)

    async def toggle_archive(self, session_id: Any) -> bool:
        """Returns True when the session is now archived."""
        sid = str(session_id)
        ids = self._settings.archived_sessions()
        if sid in ids:
            ids = [x for x in ids if x != sid]
            archived = False
            self.toasts.success("Unarchived")
        else:
            ids.append(sid)
            archived = True
            self.toasts.success("Archived")
        self._settings.set_archived_sessions(ids)
        self.archived_ids = ids
        await self.list_sessions()
        return archived

    async def create_session(self, name: Optional[str] = None) -> Optional[str]:
        name = name or f"Chat {datetime.now().strftime('%Y-%m-%d %H:%M')}"
        try:
            body = await self._api.post(
                "/api/chat/sessions",
                json={"session_name": name},
                default_error="Failed to create chat",
            )
            sid = _session_id(body, "Failed to create chat")
        except LexDeskError as e:
            self.toasts.error(e.message)
            return None
        log(log_mutation("chat", "create_session", sid, True))
        self.current_session_id = sid
        self.messages = []
        await self.list_sessions()
        return sid

    async def rename_session(self, session_id: Any, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            self.toasts.warning("Chat name cannot be empty")
            return False
        try:
            await self._api.put(
                f"/api/chat/sessions/{session_id}",
                json={"session_name": name},
                default_error="Failed to rename",
            )
        except LexDeskError as e:
            self.toasts.error(e.message)
            return False
        self.toasts.success("Chat renamed")
        await self.list_sessions()
        return True

    async def delete_session(self, session_id: Any) -> bool:
        sid = str(session_id)
        self._settings.set_archived_sessions(
            [x for x in self._settings.archived_sessions() if x != sid]
        )
        try:
            await self._api.delete(f"/api/chat/sessions/{sid}", default_error="Failed to delete chat")
        except LexDeskError as e:
            log(log_mutation("chat", "delete_session", sid, False, error=e.message))
            self.toasts.error("Failed to delete chat")
            return False
        log(log_mutation("chat", "delete_session", sid, True))
        if self.current_session_id == sid:
            self.current_session_id = None
            self.messages = []
        self.toasts.success("Chat deleted")
        await self.list_sessions()
        return True

    async def load_messages(self, session_id: Any) -> List[ChatMessage]:
        sid = str(session_id)
        self.current_session_id = sid
        try:
            body = await self._api.get(
                f"/api/chat/sessions/{sid}/messages", default_error="Failed to load messages"
            )
        except LexDeskError as e:
            self.toasts.error(e.message)
            return self.messages
        self.messages = [ChatMessage.from_api(m) for m in (body or []) if isinstance(m, dict)]
        return self.messages

    # -------------------------------------------------------------------
    # Message exchange
    # -------------------------------------------------------------------

    async def send_message(
        self,
        content: str,
        document_ids: Optional[List[int]] = None,
        case_id: Optional[int] = None,
        use_tanzlii: bool = False,
        document_name: Optional[str] = None,
    ) -> Optional[ChatMessage]:
        """
        Send one user message and append the assistant reply.

        Returns the reply, or None when nothing was sent, the user stopped
        the exchange, or it failed (an apology message is appended then).
        """
        content = (content or "").strip()
        if not content or self.sending:
            return None
        document_ids = list(document_ids or [])
        self.messages.append(ChatMessage(content=content, is_user=True))
        first_exchange = self.current_session_id is None

        try:
            if self.current_session_id is None:
                body = await self._api.post(
                    "/api/chat/sessions",
                    json={"session_name": initial_session_name(content, document_name)},
                    default_error=_SEND_FAILED,
                )
                self.current_session_id = _session_id(body, _SEND_FAILED)
                await self.list_sessions()

            self._stopped = False
            self._task = asyncio.ensure_future(
                self._exchange(self.current_session_id, content, document_ids, case_id, use_tanzlii)
            )
            reply_text = await self._task
        except asyncio.CancelledError:
            if not self._stopped:
                raise
            logger.info("Chat exchange stopped by user")
            return None
        except LexDeskError as e:
            message = chat_error_message(e)
            logger.error(f"Error sending message: {e.message}")
            self.toasts.error(message)
            self.messages.append(ChatMessage(
                content=f"I apologize, but I'm having trouble processing your request right now. {message}",
                is_user=False,
            ))
            return None
        finally:
            self._task = None

        reply = ChatMessage(content=reply_text, is_user=False)
        self.messages.append(reply)

        if first_exchange and not document_name:
            await self._retitle(self.current_session_id, content)
        return reply

    async def _exchange(
        self,
        session_id: str,
        content: str,
        document_ids: List[int],
        case_id: Optional[int],
        use_tanzlii: bool,
    ) -> str:
        if document_ids or case_id or use_tanzlii:
            payload: Dict[str, Any] = {"query": content, "use_tanzlii": use_tanzlii, "session_id": session_id}
            if document_ids:
                payload["document_ids"] = document_ids
            if case_id:
                payload["case_id"] = case_id
            body = await self._api.post(
                "/api/chat/query-documents", json=payload, default_error=_SEND_FAILED
            )
            text = response_content(body)
            await self._save_exchange(session_id, content, text)
            return text

        body = await self._api.post(
            f"/api/chat/sessions/{session_id}/messages",
            json={"content": content, "use_tanzlii": use_tanzlii, "model": self.model},
            default_error=_SEND_FAILED,
        )
        return response_content(body)

    async def _save_exchange(self, session_id: str, user_text: str, assistant_text: str) -> None:
        """query-documents does not persist; save both sides. Failures are logged only."""
        try:
            for text, kind in ((user_text, "user"), (assistant_text, "assistant")):
                await self._api.post(
                    f"/api/chat/sessions/{session_id}/messages/save",
                    json={"content": text, "message_type": kind},
                )
        except LexDeskRequestError as e:
            logger.warning(f"Error saving messages to session {session_id}: {e.message}")

    async def _retitle(self, session_id: str, content: str) -> None:
        try:
            await self._api.put(
                f"/api/chat/sessions/{session_id}",
                json={"session_name": generate_session_title(content)},
            )
        except LexDeskRequestError as e:
            logger.warning(f"Could not retitle session {session_id}: {e.message}")
            return
        await self.list_sessions()

    def stop(self) -> bool:
        """Cancel the running exchange. Returns False when nothing is in flight."""
        if not self.sending:
            return False
        self._stopped = True
        self._task.cancel()
        self.toasts.info("Stopped")
        return True

    def new_chat(self) -> None:
        self.current_session_id = None
        self.messages = []
