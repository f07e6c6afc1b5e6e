from __future__ import annotations

import asyncio

import httpx
import pytest

from assistant_engine.clients.catalog import CatalogClient, CatalogUnavailableError
from assistant_engine.core.config import load_settings

_FREELANCERS = [
    {"id": 1, "userId": 10, "profession": "UX Designer", "skills": ["Figma"], "rating": 45},
    {"id": 2, "userId": 20, "profession": "Backend Developer"},
    "garbage",
]
_USERS = [
    {"id": 10, "displayName": "Sarah Lee", "username": "sarahlee"},
    {"id": 20, "displayName": None, "username": "omar_dev"},
]


def _catalog_client(
    monkeypatch: pytest.MonkeyPatch, routes: dict[str, httpx.Response]
) -> tuple[CatalogClient, list[httpx.Request]]:
    monkeypatch.setenv("ASSISTANT_API_BASE_URL", "http://backend.test/api")
    monkeypatch.setenv("ASSISTANT_ADMIN_SESSION_HEADER", "secret")
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return routes.get(request.url.path, httpx.Response(404))

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CatalogClient(load_settings(), http_client=client), captured


def test_load_joins_freelancers_with_users(monkeypatch: pytest.MonkeyPatch) -> None:
    catalog, captured = _catalog_client(
        monkeypatch,
        {
            "/api/freelancers": httpx.Response(200, json=_FREELANCERS),
            "/api/admin/users": httpx.Response(200, json=_USERS),
        },
    )

    records = asyncio.run(catalog.load())

    assert [(record.id, record.label) for record in records] == [
        (1, "Sarah Lee"),
        (2, "omar_dev"),
    ]
    assert records[0].skills == ("Figma",)
    assert captured[1].headers["admin-session"] == "secret"


def test_load_accepts_wrapped_user_list(monkeypatch: pytest.MonkeyPatch) -> None:
    catalog, _ = _catalog_client(
        monkeypatch,
        {
            "/api/freelancers": httpx.Response(200, json=_FREELANCERS[:1]),
            "/api/admin/users": httpx.Response(200, json={"users": _USERS}),
        },
    )

    records = asyncio.run(catalog.load())

    assert records[0].names() == ["Sarah Lee", "sarahlee"]


def test_load_fails_when_users_are_forbidden(monkeypatch: pytest.MonkeyPatch) -> None:
    catalog, _ = _catalog_client(
        monkeypatch,
        {
            "/api/freelancers": httpx.Response(200, json=_FREELANCERS),
            "/api/admin/users": httpx.Response(403, json={"error": "forbidden"}),
        },
    )

    with pytest.raises(CatalogUnavailableError):
        asyncio.run(catalog.load())


def test_load_fails_on_non_list_freelancers(monkeypatch: pytest.MonkeyPatch) -> None:
    catalog, _ = _catalog_client(
        monkeypatch,
        {"/api/freelancers": httpx.Response(200, json={"freelancers": []})},
    )

    with pytest.raises(CatalogUnavailableError):
        asyncio.run(catalog.load())
