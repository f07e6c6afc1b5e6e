from __future__ import annotations

import logging
from typing import Any

import httpx

from assistant_engine.core.config import Settings
from assistant_engine.models.freelancer import FreelancerRecord, normalize_freelancer_result

FREELANCERS_PATH = "/freelancers"
USERS_PATH = "/admin/users"


class CatalogUnavailableError(Exception):
    """Either the freelancer list or the user list could not be loaded."""


class CatalogClient:
    """Loads freelancer rows and joins them with user names.

    Freelancer rows carry a ``userId``; display names and usernames live on
    the user records, so both lists must load for a usable catalog.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._base_url = settings.assistant_api_base_url.rstrip("/")
        self._admin_session = settings.admin_session_header
        self._client = http_client or httpx.AsyncClient(
            timeout=float(settings.http_timeout_seconds)
        )
        self._owns_client = http_client is None

    async def load(self) -> list[FreelancerRecord]:
        freelancers = await self._fetch_list(FREELANCERS_PATH)
        users_payload = await self._fetch(
            USERS_PATH, headers={"admin-session": self._admin_session}
        )
        users = _extract_users(users_payload)
        users_by_id = {
            user["id"]: user for user in users if isinstance(user, dict) and "id" in user
        }

        records: list[FreelancerRecord] = []
        for row in freelancers:
            if not isinstance(row, dict):
                continue
            user = users_by_id.get(row.get("userId", row.get("user_id")))
            merged = dict(row)
            if user is not None and "user" not in merged:
                merged["user"] = user
            record = normalize_freelancer_result(merged)
            if record is not None:
                records.append(record)
        self._logger.debug(
            "Loaded catalog with %d freelancers and %d users", len(records), len(users_by_id)
        )
        return records

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _fetch_list(self, path: str) -> list[Any]:
        payload = await self._fetch(path)
        if not isinstance(payload, list):
            raise CatalogUnavailableError(f"GET {path} did not return a list")
        return payload

    async def _fetch(self, path: str, headers: dict[str, str] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, headers=headers)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CatalogUnavailableError(f"GET {path} failed: {exc}") from exc


def _extract_users(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("users"), list):
        return payload["users"]
    return []
