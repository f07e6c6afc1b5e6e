from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from assistant_engine.models.freelancer import FreelancerRecord


def _new_message_id() -> str:
    return uuid.uuid4().hex[:12]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    content: str
    is_user: bool
    id: str = field(default_factory=_new_message_id)
    timestamp: datetime = field(default_factory=_utcnow)
    clarifying_questions: tuple[str, ...] | None = None
    needs_more_info: bool | None = None
    freelancer_matches: tuple[FreelancerRecord, ...] | None = None

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(content=content, is_user=True)

    @classmethod
    def assistant(cls, content: str, **extra: object) -> ChatMessage:
        return cls(content=content, is_user=False, **extra)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "content": self.content,
            "isUser": self.is_user,
            "timestamp": self.timestamp.isoformat(),
            "clarifyingQuestions": None
            if self.clarifying_questions is None
            else list(self.clarifying_questions),
            "needsMoreInfo": self.needs_more_info,
            "freelancerMatches": None
            if self.freelancer_matches is None
            else [match.to_dict() for match in self.freelancer_matches],
        }
