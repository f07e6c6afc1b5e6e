from __future__ import annotations

import logging
from typing import Any

import httpx

from assistant_engine.core.config import Settings

STATUS_PATH = "/ai/status"
MESSAGE_PATH = "/ai/message"


class AssistantAPIError(Exception):
    """The assistant backend could not be reached or returned an unusable reply."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AssistantAPIClient:
    """Async client for the assistant backend's status and message endpoints."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._base_url = settings.assistant_api_base_url.rstrip("/")
        self._status_timeout = float(settings.status_timeout_seconds)
        self._message_timeout = float(settings.http_timeout_seconds)
        self._client = http_client or httpx.AsyncClient(timeout=self._message_timeout)
        self._owns_client = http_client is None

    async def fetch_status(self) -> dict[str, Any]:
        return await self._request_json("GET", STATUS_PATH, timeout=self._status_timeout)

    async def post_message(
        self, message: str, metadata: dict[str, object] | None = None
    ) -> dict[str, Any]:
        body: dict[str, object] = {"message": message}
        if metadata:
            body["metadata"] = metadata
        return await self._request_json(
            "POST", MESSAGE_PATH, json=body, timeout=self._message_timeout
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        json: dict[str, object] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, json=json, timeout=timeout)
        except httpx.HTTPError as exc:
            raise AssistantAPIError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            raise AssistantAPIError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise AssistantAPIError(f"{method} {path} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise AssistantAPIError(f"{method} {path} returned a non-object payload")
        return payload
