"""
LexDesk API Client — Async REST calls to the practice-management backend.

Pipeline (per call):
    1. Attach bearer token from the SettingsStore (if any)
    2. Pick timeout — chat/AI endpoints get the extended chat timeout
    3. Execute via httpx.AsyncClient (one pooled client per ApiClient)
    4. 401 → clear stored token, raise LexDeskSessionError
    5. Non-2xx → LexDeskRequestError with a readable message from the body
    6. Log the round trip (structured api/ log)

The backend is an opaque collaborator: bodies are passed through as parsed
JSON (or text when the body is not JSON).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from lexdesk.engine.errors import (
    LexDeskRequestError,
    LexDeskSessionError,
    format_api_error,
)
from lexdesk.engine.logging import log, log_api_call
from lexdesk.engine.settings_store import ACCESS_TOKEN, SettingsStore

logger = logging.getLogger("lexdesk.engine.api")


class ApiClient:
    """
    Thin async wrapper over httpx for the LexDesk backend.

    Use as an async context manager, or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        settings: Optional[SettingsStore] = None,
        timeout: int = 30,
        chat_timeout: int = 120,
        chat_endpoints: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._settings = settings
        self._timeout = timeout
        self._chat_timeout = chat_timeout
        self._chat_endpoints = chat_endpoints or [
            "/api/chat/query-documents",
            "/api/chat/sessions",
        ]
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: Any,
        settings: Optional[SettingsStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ApiClient":
        """Build a client from a LexDeskConfig."""
        return cls(
            base_url=config.api.base_url,
            settings=settings,
            timeout=config.api.timeout,
            chat_timeout=config.api.chat_timeout,
            chat_endpoints=list(config.api.chat_endpoints),
            transport=transport,
        )

    # -------------------------------------------------------------------
    # Client lifecycle
    # -------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # -------------------------------------------------------------------
    # Request pipeline
    # -------------------------------------------------------------------

    def timeout_for(self, path: str) -> int:
        """Chat endpoints wait longer for model responses."""
        if any(endpoint in path for endpoint in self._chat_endpoints):
            return self._chat_timeout
        return self._timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self._settings.access_token if self._settings else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        default_error: str = "Request failed",
        raw: bool = False,
    ) -> Any:
        """
        Execute one request and return the parsed body (the raw bytes when
        *raw* is set).

        Raises:
            LexDeskSessionError on 401.
            LexDeskRequestError on any other non-2xx status or transport failure.
        """
        client = self._get_client()
        started = time.monotonic()
        try:
            response = await client.request(
                method,
                path,
                json=json,
                params=params,
                files=files,
                data=data,
                headers=self._headers(),
                timeout=self.timeout_for(path),
            )
        except httpx.HTTPError as e:
            duration_ms = (time.monotonic() - started) * 1000
            log(log_api_call(method, path, None, duration_ms, error=str(e)))
            logger.error(f"{method.upper()} {path} failed: {e}")
            raise LexDeskRequestError(
                default_error,
                endpoint=path,
                cause=str(e),
            ) from e

        duration_ms = (time.monotonic() - started) * 1000
        body = self._parse_body(response)
        log(log_api_call(method, path, response.status_code, duration_ms))

        if response.status_code == 401:
            if self._settings is not None:
                self._settings.remove(ACCESS_TOKEN)
            raise LexDeskSessionError(
                format_api_error(body, "Session expired. Please sign in again."),
                status_code=401,
                endpoint=path,
                response_body=body,
            )

        if not response.is_success:
            logger.warning(f"{method.upper()} {path} → {response.status_code}")
            raise LexDeskRequestError(
                format_api_error(body, default_error),
                status_code=response.status_code,
                endpoint=path,
                response_body=body,
            )

        if raw:
            return response.content
        return body

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def download(self, path: str, **kwargs: Any) -> bytes:
        return await self.request("GET", path, raw=True, **kwargs)

    def __repr__(self) -> str:
        return f"<ApiClient base_url='{self._base_url}'>"
