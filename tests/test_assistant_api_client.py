from __future__ import annotations

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from assistant_engine.clients.assistant_api import AssistantAPIClient, AssistantAPIError
from assistant_engine.core.config import load_settings


def _client(
    monkeypatch: pytest.MonkeyPatch,
    handler: Callable[[httpx.Request], httpx.Response],
    captured: list[httpx.Request] | None = None,
) -> AssistantAPIClient:
    monkeypatch.setenv("ASSISTANT_API_BASE_URL", "http://backend.test/api/")

    def record(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return handler(request)

    transport = httpx.MockTransport(record)
    return AssistantAPIClient(load_settings(), http_client=httpx.AsyncClient(transport=transport))


def test_fetch_status_hits_status_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[httpx.Request] = []
    client = _client(
        monkeypatch,
        lambda request: httpx.Response(200, json={"available": True, "services": {}}),
        captured,
    )

    payload = asyncio.run(client.fetch_status())

    assert payload == {"available": True, "services": {}}
    assert captured[0].method == "GET"
    assert str(captured[0].url) == "http://backend.test/api/ai/status"


def test_post_message_sends_message_and_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[httpx.Request] = []
    client = _client(
        monkeypatch, lambda request: httpx.Response(200, json={"content": "hi"}), captured
    )

    payload = asyncio.run(client.post_message("hello", {"provider": "ollama"}))

    assert payload == {"content": "hi"}
    assert str(captured[0].url) == "http://backend.test/api/ai/message"
    assert json.loads(captured[0].content) == {
        "message": "hello",
        "metadata": {"provider": "ollama"},
    }


def test_post_message_omits_empty_metadata(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[httpx.Request] = []
    client = _client(
        monkeypatch, lambda request: httpx.Response(200, json={"content": "hi"}), captured
    )

    asyncio.run(client.post_message("hello"))

    assert json.loads(captured[0].content) == {"message": "hello"}


def test_http_error_status_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, lambda request: httpx.Response(503, json={"error": "down"}))

    with pytest.raises(AssistantAPIError) as excinfo:
        asyncio.run(client.fetch_status())

    assert excinfo.value.status_code == 503


@pytest.mark.parametrize(
    "body",
    [
        {"content": b"<html>oops</html>"},
        {"json": ["not", "an", "object"]},
    ],
)
def test_unusable_body_raises(monkeypatch: pytest.MonkeyPatch, body: dict[str, object]) -> None:
    client = _client(monkeypatch, lambda request: httpx.Response(200, **body))

    with pytest.raises(AssistantAPIError):
        asyncio.run(client.post_message("hello"))


def test_transport_error_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(monkeypatch, refuse)

    with pytest.raises(AssistantAPIError) as excinfo:
        asyncio.run(client.fetch_status())

    assert excinfo.value.status_code is None
