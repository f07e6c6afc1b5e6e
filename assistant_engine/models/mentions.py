from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from assistant_engine.models.freelancer import FreelancerRecord

PROFILE_PATH_TEMPLATE = "/freelancers/{id}"
CHAT_PATH_TEMPLATE = "/messages/new/{id}"


class MentionSource(str, Enum):
    TAG = "tag"
    LEGACY_ID = "legacy_id"
    NAME = "name"


@dataclass(frozen=True, order=True)
class MentionSpan:
    start_offset: int
    end_offset: int
    freelancer_id: int
    source: MentionSource

    def overlaps(self, other: MentionSpan) -> bool:
        return self.start_offset < other.end_offset and other.start_offset < self.end_offset


@dataclass(frozen=True)
class LiteralText:
    text: str

    def to_dict(self) -> dict[str, object]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ResolvedMention:
    span: MentionSpan
    freelancer: FreelancerRecord
    text: str

    @property
    def profile_path(self) -> str:
        return PROFILE_PATH_TEMPLATE.format(id=self.freelancer.id)

    @property
    def chat_path(self) -> str:
        return CHAT_PATH_TEMPLATE.format(id=self.freelancer.id)

    def to_dict(self) -> dict[str, object]:
        return {
            "type": "freelancer",
            "freelancerId": self.freelancer.id,
            "label": self.freelancer.label,
            "text": self.text,
            "source": self.span.source.value,
            "start": self.span.start_offset,
            "end": self.span.end_offset,
            "profilePath": self.profile_path,
            "chatPath": self.chat_path,
        }


Segment = Union[LiteralText, ResolvedMention]
