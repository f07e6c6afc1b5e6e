from __future__ import annotations

from functools import lru_cache

from assistant_engine.clients.assistant_api import AssistantAPIClient
from assistant_engine.clients.catalog import CatalogClient
from assistant_engine.core.config import Settings, load_settings
from assistant_engine.services.availability import ProviderAvailabilityProbe
from assistant_engine.services.chat import ChatSession, SessionRegistry
from assistant_engine.services.dispatch import MessageDispatcher
from assistant_engine.services.mentions import MentionResolver


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_assistant_api_client() -> AssistantAPIClient:
    return AssistantAPIClient(get_settings())


@lru_cache
def get_catalog_client() -> CatalogClient:
    return CatalogClient(get_settings())


@lru_cache
def get_availability_probe() -> ProviderAvailabilityProbe:
    settings = get_settings()
    return ProviderAvailabilityProbe(get_assistant_api_client(), dev_mode=settings.dev_mode)


@lru_cache
def get_message_dispatcher() -> MessageDispatcher:
    return MessageDispatcher(get_assistant_api_client())


@lru_cache
def get_mention_resolver() -> MentionResolver:
    return MentionResolver()


def _new_session(session_id: str) -> ChatSession:
    return ChatSession(
        probe=get_availability_probe(),
        dispatcher=get_message_dispatcher(),
        load_catalog=get_catalog_client().load,
        session_id=session_id,
        resolver=get_mention_resolver(),
    )


@lru_cache
def get_session_registry() -> SessionRegistry:
    return SessionRegistry(_new_session, max_sessions=get_settings().max_sessions)


async def close_clients() -> None:
    if get_assistant_api_client.cache_info().currsize:
        await get_assistant_api_client().aclose()
    if get_catalog_client.cache_info().currsize:
        await get_catalog_client().aclose()
