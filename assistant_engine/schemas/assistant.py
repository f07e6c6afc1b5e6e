from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ServiceFlagsModel(BaseModel):
    deepseek: bool = False
    anthropic: bool = False
    ollama: bool = False
    legacy: bool = False


class StatusResponse(BaseModel):
    available: bool
    services: ServiceFlagsModel
    primary_service: str | None = Field(default=None, alias="primaryService")
    active_provider: str | None = Field(default=None, alias="activeProvider")

    model_config = ConfigDict(populate_by_name=True)


class ChatTurnRequest(BaseModel):
    message: str = Field(min_length=1)


class ResolveRequest(BaseModel):
    text: str


class SegmentModel(BaseModel):
    """A literal run of text or a resolved freelancer reference."""

    type: str
    text: str
    freelancer_id: int | None = Field(default=None, alias="freelancerId")
    label: str | None = None
    source: str | None = None
    start: int | None = None
    end: int | None = None
    profile_path: str | None = Field(default=None, alias="profilePath")
    chat_path: str | None = Field(default=None, alias="chatPath")

    model_config = ConfigDict(populate_by_name=True)


class FreelancerMatchModel(BaseModel):
    id: int
    label: str
    profession: str | None = None
    skills: list[str] = Field(default_factory=list)
    hourly_rate: float | None = Field(default=None, alias="hourlyRate")
    location: str | None = None
    rating: float | None = None
    match_score: int | None = Field(default=None, alias="matchScore")
    match_reasons: list[str] = Field(default_factory=list, alias="matchReasons")

    model_config = ConfigDict(populate_by_name=True)


class ChatMessageModel(BaseModel):
    id: str
    content: str
    is_user: bool = Field(alias="isUser")
    timestamp: datetime
    clarifying_questions: list[str] | None = Field(default=None, alias="clarifyingQuestions")
    needs_more_info: bool | None = Field(default=None, alias="needsMoreInfo")
    freelancer_matches: list[FreelancerMatchModel] | None = Field(
        default=None, alias="freelancerMatches"
    )
    segments: list[SegmentModel] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class ChatTurnResponse(BaseModel):
    status: str = "ok"
    session_id: str = Field(alias="sessionId")
    active_provider: str | None = Field(default=None, alias="activeProvider")
    messages: list[ChatMessageModel]

    model_config = ConfigDict(populate_by_name=True)


class ResolveResponse(BaseModel):
    status: str = "ok"
    segments: list[SegmentModel]
