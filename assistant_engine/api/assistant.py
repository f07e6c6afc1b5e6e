from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from assistant_engine.clients.catalog import CatalogClient
from assistant_engine.core.dependencies import (
    get_availability_probe,
    get_catalog_client,
    get_mention_resolver,
    get_session_registry,
)
from assistant_engine.models.chat import ChatMessage
from assistant_engine.models.freelancer import FreelancerRecord
from assistant_engine.models.mentions import Segment
from assistant_engine.schemas.assistant import (
    ChatMessageModel,
    ChatTurnRequest,
    ChatTurnResponse,
    FreelancerMatchModel,
    ResolveRequest,
    ResolveResponse,
    SegmentModel,
    ServiceFlagsModel,
    StatusResponse,
)
from assistant_engine.services.availability import ProviderAvailabilityProbe
from assistant_engine.services.chat import ChatSession, SessionRegistry
from assistant_engine.services.mentions import MentionResolver, resolve_mentions
from assistant_engine.services.selection import select_active

router = APIRouter(prefix="/assistant")


@router.get("/status", response_model=StatusResponse)
async def assistant_status(
    probe: ProviderAvailabilityProbe = Depends(get_availability_probe),  # noqa: B008
) -> StatusResponse:
    status = await probe.probe()
    selection = select_active(status, None)
    return StatusResponse(
        available=status.available,
        services=ServiceFlagsModel(**status.services.to_dict()),
        primary_service=None if status.primary_service is None else status.primary_service.value,
        active_provider=None if selection.active is None else selection.active.value,
    )


@router.post("/sessions/{session_id}/messages", response_model=ChatTurnResponse)
async def send_message(
    session_id: str,
    request: ChatTurnRequest,
    registry: SessionRegistry = Depends(get_session_registry),  # noqa: B008
) -> ChatTurnResponse:
    """Run one chat turn. A new session answers with its greeting first."""
    session, created = await registry.get_or_start(session_id)
    greeting = session.messages[:1] if created else []
    appended = await session.send(request.message)
    return await _turn_response(session, greeting + appended)


@router.get("/sessions/{session_id}/messages", response_model=ChatTurnResponse)
async def list_messages(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),  # noqa: B008
) -> ChatTurnResponse:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"unknown session '{session_id}'")
    return await _turn_response(session, list(session.messages))


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),  # noqa: B008
) -> Response:
    if not registry.close(session_id):
        raise HTTPException(status_code=404, detail=f"unknown session '{session_id}'")
    return Response(status_code=204)


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_text(
    request: ResolveRequest,
    catalog: CatalogClient = Depends(get_catalog_client),  # noqa: B008
    resolver: MentionResolver = Depends(get_mention_resolver),  # noqa: B008
) -> ResolveResponse:
    segments = await resolve_mentions(request.text, catalog.load, resolver)
    return ResolveResponse(segments=[_segment_model(segment) for segment in segments])


async def _turn_response(session: ChatSession, messages: list[ChatMessage]) -> ChatTurnResponse:
    segments = await session.render_many(messages)
    rendered = [_message_model(message, segs) for message, segs in zip(messages, segments)]
    provider = session.active_provider
    return ChatTurnResponse(
        session_id=session.session_id or "",
        active_provider=None if provider is None else provider.value,
        messages=rendered,
    )


def _message_model(message: ChatMessage, segments: list[Segment]) -> ChatMessageModel:
    matches = message.freelancer_matches
    return ChatMessageModel(
        id=message.id,
        content=message.content,
        is_user=message.is_user,
        timestamp=message.timestamp,
        clarifying_questions=None
        if message.clarifying_questions is None
        else list(message.clarifying_questions),
        needs_more_info=message.needs_more_info,
        freelancer_matches=None if matches is None else [_match_model(m) for m in matches],
        segments=[_segment_model(segment) for segment in segments],
    )


def _match_model(record: FreelancerRecord) -> FreelancerMatchModel:
    return FreelancerMatchModel(
        id=record.id,
        label=record.label,
        profession=record.profession,
        skills=list(record.skills),
        hourly_rate=record.hourly_rate,
        location=record.location,
        rating=record.rating,
        match_score=record.match_score,
        match_reasons=list(record.match_reasons),
    )


def _segment_model(segment: Segment) -> SegmentModel:
    return SegmentModel.model_validate(segment.to_dict())
