from __future__ import annotations

import asyncio
from typing import Any

import pytest

from assistant_engine.clients.assistant_api import AssistantAPIError
from assistant_engine.clients.providers import AIProvider
from assistant_engine.services.dispatch import MessageDispatcher, normalize_reply


class FakeMessageSink:
    def __init__(self, payload: dict[str, Any] | None = None, error: Exception | None = None):
        self._payload = payload or {}
        self._error = error
        self.sent: list[tuple[str, dict[str, object] | None]] = []

    async def post_message(
        self, message: str, metadata: dict[str, object] | None = None
    ) -> dict[str, Any]:
        self.sent.append((message, metadata))
        if self._error is not None:
            raise self._error
        return self._payload


def _matches(*ids: int) -> list[dict[str, object]]:
    return [{"id": freelancer_id} for freelancer_id in ids]


@pytest.mark.parametrize(
    ("payload", "expected_ids"),
    [
        (
            {
                "metadata": {"matches": _matches(1), "freelancerMatches": _matches(2)},
                "matches": _matches(3),
                "freelancerMatches": _matches(4),
            },
            [1],
        ),
        (
            {
                "metadata": {"freelancerMatches": _matches(2)},
                "matches": _matches(3),
                "freelancerMatches": _matches(4),
            },
            [2],
        ),
        ({"matches": _matches(3), "freelancerMatches": _matches(4)}, [3]),
        ({"freelancerMatches": _matches(4, 5)}, [4, 5]),
        ({"metadata": {"matches": []}, "matches": _matches(3)}, [3]),
        ({"metadata": {}}, []),
    ],
    ids=[
        "metadata-matches",
        "metadata-freelancer-matches",
        "top-level-matches",
        "top-level-freelancer-matches",
        "empty-list-is-skipped",
        "none-present",
    ],
)
def test_match_location_precedence(payload: dict[str, Any], expected_ids: list[int]) -> None:
    reply = normalize_reply({"content": "ok", **payload})

    assert [record.id for record in reply.freelancer_matches] == expected_ids


def test_content_preferred_over_legacy_response() -> None:
    assert normalize_reply({"content": "new", "response": "old"}).content == "new"
    assert normalize_reply({"response": "old"}).content == "old"
    assert normalize_reply({"content": "", "response": "old"}).content == "old"
    assert normalize_reply({}).content == ""


def test_clarifying_questions_top_level_wins() -> None:
    reply = normalize_reply(
        {
            "content": "ok",
            "clarifyingQuestions": ["What is your budget?"],
            "metadata": {"clarifyingQuestions": ["Timeline?"]},
        }
    )

    assert reply.clarifying_questions == ("What is your budget?",)


def test_clarifying_questions_from_metadata() -> None:
    reply = normalize_reply(
        {
            "content": "ok",
            "metadata": {"clarifyingQuestions": ["Timeline?", 3, " "], "needsMoreInfo": True},
        }
    )

    assert reply.clarifying_questions == ("Timeline?",)
    assert reply.needs_more_info is True


def test_wrapped_matches_are_normalized_and_junk_dropped() -> None:
    reply = normalize_reply(
        {
            "content": "ok",
            "matches": [
                {"freelancerId": 9, "freelancer": {"id": 9, "displayName": "Lana Karim"}},
                "not-a-match",
                {"displayName": "missing id"},
            ],
        }
    )

    assert [record.label for record in reply.freelancer_matches] == ["Lana Karim"]


def test_declared_provider_reports_fallback() -> None:
    reply = normalize_reply({"content": "ok", "metadata": {"provider": "ollama"}})

    assert reply.provider is AIProvider.OLLAMA
    assert reply.provider_fallback(AIProvider.DEEPSEEK) is AIProvider.OLLAMA
    assert reply.provider_fallback(AIProvider.OLLAMA) is None


def test_unknown_declared_provider_is_ignored() -> None:
    reply = normalize_reply({"content": "ok", "metadata": {"provider": "original"}})

    assert reply.provider is None
    assert reply.provider_fallback(AIProvider.DEEPSEEK) is None


def test_send_passes_provider_and_session_metadata() -> None:
    sink = FakeMessageSink({"content": "Hello!"})

    reply = asyncio.run(
        MessageDispatcher(sink).send("find a designer", AIProvider.ANTHROPIC, "session-1")
    )

    assert reply.content == "Hello!"
    assert sink.sent == [
        ("find a designer", {"provider": "anthropic", "sessionId": "session-1"})
    ]


def test_send_without_provider_sends_no_metadata() -> None:
    sink = FakeMessageSink({"content": "Hello!"})

    asyncio.run(MessageDispatcher(sink).send("hi", None))

    assert sink.sent == [("hi", None)]


def test_send_propagates_api_errors() -> None:
    sink = FakeMessageSink(error=AssistantAPIError("HTTP 503", status_code=503))

    with pytest.raises(AssistantAPIError):
        asyncio.run(MessageDispatcher(sink).send("hi", AIProvider.DEEPSEEK))
    assert len(sink.sent) == 1
