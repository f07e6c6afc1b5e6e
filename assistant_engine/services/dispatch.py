from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from assistant_engine.clients.providers import AIProvider, parse_provider
from assistant_engine.models.freelancer import FreelancerRecord, normalize_freelancer_result

logger = logging.getLogger(__name__)

Accessor = Callable[[Mapping[str, Any]], Any]


class MessageSink(Protocol):
    async def post_message(
        self, message: str, metadata: dict[str, object] | None = None
    ) -> dict[str, Any]:
        raise NotImplementedError


def _top(key: str) -> Accessor:
    def access(payload: Mapping[str, Any]) -> Any:
        return payload.get(key)

    access.__name__ = key
    return access


def _meta(key: str) -> Accessor:
    def access(payload: Mapping[str, Any]) -> Any:
        metadata = payload.get("metadata")
        if isinstance(metadata, Mapping):
            return metadata.get(key)
        return None

    access.__name__ = f"metadata.{key}"
    return access


CONTENT_ACCESSORS: tuple[Accessor, ...] = (_top("content"), _top("response"))
CLARIFYING_QUESTION_ACCESSORS: tuple[Accessor, ...] = (
    _top("clarifyingQuestions"),
    _meta("clarifyingQuestions"),
)
NEEDS_MORE_INFO_ACCESSORS: tuple[Accessor, ...] = (
    _top("needsMoreInfo"),
    _meta("needsMoreInfo"),
)
MATCH_ACCESSORS: tuple[Accessor, ...] = (
    _meta("matches"),
    _meta("freelancerMatches"),
    _top("matches"),
    _top("freelancerMatches"),
)


def first_present(
    payload: Mapping[str, Any],
    accessors: Sequence[Accessor],
    accept: Callable[[Any], bool],
) -> Any:
    """Value of the first accessor whose result ``accept`` allows, else None."""
    for accessor in accessors:
        value = accessor(payload)
        if accept(value):
            return value
    return None


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


@dataclass(frozen=True)
class NormalizedReply:
    content: str
    clarifying_questions: tuple[str, ...] = ()
    needs_more_info: bool | None = None
    freelancer_matches: tuple[FreelancerRecord, ...] = ()
    provider: AIProvider | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def provider_fallback(self, active: AIProvider | None) -> AIProvider | None:
        """The declared provider when it differs from the one we think is active."""
        if self.provider is not None and self.provider != active:
            return self.provider
        return None


def normalize_reply(payload: Mapping[str, Any]) -> NormalizedReply:
    content = first_present(payload, CONTENT_ACCESSORS, _non_empty_str) or ""
    questions = first_present(payload, CLARIFYING_QUESTION_ACCESSORS, _non_empty_list) or []
    needs_more_info = first_present(payload, NEEDS_MORE_INFO_ACCESSORS, _is_bool)
    raw_matches = first_present(payload, MATCH_ACCESSORS, _non_empty_list) or []

    matches: list[FreelancerRecord] = []
    for item in raw_matches:
        record = normalize_freelancer_result(item)
        if record is None:
            logger.debug("Dropping unusable freelancer match: %r", item)
            continue
        matches.append(record)

    metadata = payload.get("metadata")
    declared = metadata.get("provider") if isinstance(metadata, Mapping) else None

    return NormalizedReply(
        content=content,
        clarifying_questions=tuple(q for q in questions if isinstance(q, str) and q.strip()),
        needs_more_info=needs_more_info,
        freelancer_matches=tuple(matches),
        provider=parse_provider(declared),
        raw=payload,
    )


class MessageDispatcher:
    """Sends one chat message and normalizes the reply envelope.

    No retries and no queuing; ``AssistantAPIError`` propagates to the caller.
    """

    def __init__(self, sink: MessageSink) -> None:
        self._logger = logger
        self._sink = sink

    async def send(
        self,
        text: str,
        active_provider: AIProvider | None,
        session_id: str | None = None,
    ) -> NormalizedReply:
        metadata: dict[str, object] = {}
        if active_provider is not None:
            metadata["provider"] = active_provider.value
        if session_id:
            metadata["sessionId"] = session_id
        payload = await self._sink.post_message(text, metadata or None)
        reply = normalize_reply(payload)
        if not reply.content:
            self._logger.warning("Unrecognized AI reply format, keys=%s", sorted(payload))
        return reply
