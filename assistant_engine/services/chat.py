from __future__ import annotations

import asyncio
import itertools
import logging
from collections import OrderedDict
from collections.abc import Callable, Sequence

from assistant_engine.clients.assistant_api import AssistantAPIError
from assistant_engine.clients.providers import AIProvider
from assistant_engine.models.chat import ChatMessage
from assistant_engine.models.mentions import LiteralText, Segment
from assistant_engine.models.status import ProviderStatus
from assistant_engine.services.availability import ProviderAvailabilityProbe
from assistant_engine.services.dispatch import MessageDispatcher
from assistant_engine.services.mentions import (
    CatalogLoader,
    MentionResolver,
    load_catalog_or_none,
    resolve_or_literal,
)
from assistant_engine.services.scoring import annotate_match_scores, rank_matches
from assistant_engine.services.selection import fallback_notice, select_active

logger = logging.getLogger(__name__)

EMPTY_REPLY_MESSAGE = "I couldn't generate a response. Please try rephrasing your question."
DISPATCH_ERROR_MESSAGE = (
    "I'm sorry, I encountered an error while processing your request. Please try again later."
)
NO_PROVIDER_MESSAGE = (
    "I'm currently unavailable because none of our AI services are responding. "
    "Our team is working on it and I'll be back soon!"
)


def _welcome_message(active: AIProvider | None) -> str:
    message = "Hi there! I'm FreelanceAI, your intelligent assistant"
    if active is None:
        message += "."
    elif active is AIProvider.DEEPSEEK:
        message += f" powered by {active.display_name}."
    else:
        message += f" (using {active.display_name} as a fallback service)."
    return (
        message + " How can I help you today? You can ask me to find freelancers for your "
        "project or help you understand how our marketplace works."
    )


def _unavailable_message(status: ProviderStatus) -> str:
    message = (
        "Welcome to our freelance marketplace! I'm your AI assistant, "
        "but I'm currently unavailable. "
    )
    services = status.services
    if not services.deepseek and not services.ollama:
        return (
            message
            + "All AI services are offline. Our team is working on it and I'll be back soon!"
        )
    if not services.deepseek and services.ollama:
        return (
            message
            + "The DeepSeek R1 API service is unavailable, but Ollama might work as a fallback."
        )
    return message + "Our team is working on it and I'll be back soon!"


class ChatSession:
    """One assistant conversation: its transcript and its active provider.

    Every probe and dispatch takes a ticket from a monotonic counter. Provider
    state is only updated by an operation newer than the last one applied, so
    a slow, superseded request cannot roll the provider back.
    """

    def __init__(
        self,
        probe: ProviderAvailabilityProbe,
        dispatcher: MessageDispatcher,
        load_catalog: CatalogLoader,
        session_id: str | None = None,
        resolver: MentionResolver | None = None,
    ) -> None:
        self._logger = logger
        self._probe = probe
        self._dispatcher = dispatcher
        self._load_catalog = load_catalog
        self._resolver = resolver or MentionResolver()
        self.session_id = session_id
        self.messages: list[ChatMessage] = []
        self.status: ProviderStatus | None = None
        self.active_provider: AIProvider | None = None
        self._tickets = itertools.count(1)
        self._applied_ticket = 0

    @property
    def available(self) -> bool:
        return self.active_provider is not None

    async def start(self) -> ChatMessage:
        """Probe the backend and greet the user."""
        await self.refresh_status(announce=False)
        if self.status is not None and self.status.available and self.active_provider:
            greeting = _welcome_message(self.active_provider)
        else:
            greeting = _unavailable_message(self.status or ProviderStatus.unavailable())
        return self._append(ChatMessage.assistant(greeting))

    async def refresh_status(self, announce: bool = True) -> ProviderStatus:
        ticket = next(self._tickets)
        status = await self._probe.probe()
        if ticket < self._applied_ticket:
            self._logger.info("Ignoring stale AI status probe (ticket %d)", ticket)
            return status
        self.status = status
        selection = select_active(status, self.active_provider)
        if selection.changed:
            self._switch_provider(ticket, selection.active, announce=announce)
        else:
            self._applied_ticket = ticket
        return status

    async def send(self, text: str) -> list[ChatMessage]:
        """Run one chat turn. Returns the messages appended by this turn."""
        if not text.strip():
            return []
        appended = [self._append(ChatMessage.user(text))]
        if self.active_provider is None:
            appended.append(self._append(ChatMessage.assistant(NO_PROVIDER_MESSAGE)))
            return appended

        ticket = next(self._tickets)
        requested_provider = self.active_provider
        try:
            reply = await self._dispatcher.send(text, requested_provider, self.session_id)
        except AssistantAPIError as exc:
            self._logger.warning("AI message dispatch failed: %s", exc)
            appended.append(self._append(ChatMessage.assistant(DISPATCH_ERROR_MESSAGE)))
            return appended
        except Exception:  # noqa: BLE001
            self._logger.exception("AI message dispatch failed unexpectedly")
            appended.append(self._append(ChatMessage.assistant(DISPATCH_ERROR_MESSAGE)))
            return appended

        fallback = reply.provider_fallback(requested_provider)
        if fallback is not None and ticket > self._applied_ticket:
            self._logger.info(
                "Backend answered with %s instead of %s", fallback.value, requested_provider.value
            )
            notice = self._switch_provider(ticket, fallback, announce=True)
            if notice is not None:
                appended.append(notice)

        matches = rank_matches(annotate_match_scores(reply.freelancer_matches))
        appended.append(
            self._append(
                ChatMessage.assistant(
                    reply.content or EMPTY_REPLY_MESSAGE,
                    clarifying_questions=reply.clarifying_questions or None,
                    needs_more_info=reply.needs_more_info,
                    freelancer_matches=tuple(matches) or None,
                )
            )
        )
        return appended

    async def render(self, message: ChatMessage) -> list[Segment]:
        return (await self.render_many([message]))[0]

    async def render_many(self, messages: Sequence[ChatMessage]) -> list[list[Segment]]:
        """Segments for each message. The catalog is loaded at most once."""
        catalog = None
        if any(not message.is_user for message in messages):
            catalog = await load_catalog_or_none(self._load_catalog)
        return [
            [LiteralText(message.content)]
            if message.is_user
            else resolve_or_literal(message.content, catalog, self._resolver)
            for message in messages
        ]

    def _switch_provider(
        self, ticket: int, provider: AIProvider | None, announce: bool
    ) -> ChatMessage | None:
        previous = self.active_provider
        self.active_provider = provider
        self._applied_ticket = ticket
        if not announce:
            return None
        notice = fallback_notice(previous, provider)
        if notice is None:
            return None
        return self._append(ChatMessage.assistant(notice))

    def _append(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message


class SessionRegistry:
    """In-process chat sessions keyed by id. Nothing is persisted.

    Holds at most ``max_sessions``; the least recently used session is
    dropped when a new one would exceed the cap.
    """

    def __init__(self, factory: Callable[[str], ChatSession], max_sessions: int = 1000) -> None:
        self._logger = logger
        self._factory = factory
        self._max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[str, ChatSession] = OrderedDict()
        self._starting: dict[str, asyncio.Future[ChatMessage]] = {}

    def session_ids(self) -> list[str]:
        """Ids from least to most recently used."""
        return list(self._sessions)

    def get(self, session_id: str) -> ChatSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    async def get_or_start(self, session_id: str) -> tuple[ChatSession, bool]:
        """Return the session, starting it first if it is new.

        Callers that arrive while the session is still starting wait for the
        greeting before they get the session.
        """
        session = self.get(session_id)
        if session is not None:
            starting = self._starting.get(session_id)
            if starting is not None:
                await asyncio.shield(starting)
            return session, False

        session = self._factory(session_id)
        self._sessions[session_id] = session
        self._evict()
        starting = asyncio.ensure_future(session.start())
        self._starting[session_id] = starting
        try:
            await asyncio.shield(starting)
        except Exception:
            self._sessions.pop(session_id, None)
            raise
        finally:
            self._starting.pop(session_id, None)
        return session, True

    def close(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict(self) -> None:
        while len(self._sessions) > self._max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            self._logger.info("Evicting chat session %s", evicted)
