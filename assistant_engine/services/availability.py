from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from assistant_engine.clients.assistant_api import AssistantAPIError
from assistant_engine.clients.providers import AIProvider, parse_provider
from assistant_engine.models.status import ProviderStatus, ServiceFlags

logger = logging.getLogger(__name__)


class StatusSource(Protocol):
    async def fetch_status(self) -> dict[str, Any]:
        raise NotImplementedError


class ProviderAvailabilityProbe:
    """Fetches backend status and normalizes it into a ``ProviderStatus``.

    ``dev_mode`` forces the assistant on with Anthropic as the primary
    service, for local work against a backend without provider keys.
    """

    def __init__(self, source: StatusSource, dev_mode: bool = False) -> None:
        self._logger = logger
        self._source = source
        self._dev_mode = dev_mode

    async def probe(self) -> ProviderStatus:
        try:
            payload = await self._source.fetch_status()
        except AssistantAPIError as exc:
            self._logger.warning("AI status probe failed: %s", exc)
            payload = None
        except Exception:  # noqa: BLE001
            self._logger.exception("AI status probe failed unexpectedly")
            payload = None

        if payload is None and not self._dev_mode:
            return ProviderStatus.unavailable()

        status = normalize_status(payload or {}, dev_mode=self._dev_mode)
        self._logger.debug("Normalized AI status: %s", status.to_dict())
        return status


def normalize_status(payload: Mapping[str, Any], dev_mode: bool = False) -> ProviderStatus:
    """Apply the dev override, defensive parsing and self-correction, in that order."""
    services = _parse_services(payload.get("services"))
    primary = parse_provider(payload.get("primaryService"))
    available = payload.get("available") is True

    if dev_mode:
        return ProviderStatus(
            available=True,
            services=ServiceFlags(
                deepseek=services.deepseek,
                anthropic=True,
                ollama=services.ollama,
                legacy=services.legacy,
            ),
            primary_service=AIProvider.ANTHROPIC,
        )

    candidates = services.available_providers()
    if not available and candidates:
        logger.info("Services available but status reports unavailable, correcting")
        available = True
        if primary is None:
            primary = candidates[0]

    return ProviderStatus(available=available, services=services, primary_service=primary)


def _parse_services(value: object) -> ServiceFlags:
    if not isinstance(value, Mapping):
        return ServiceFlags()
    legacy = value.get("legacy")
    if legacy is None:
        legacy = value.get("original")
    return ServiceFlags(
        deepseek=value.get("deepseek") is True,
        anthropic=value.get("anthropic") is True,
        ollama=value.get("ollama") is True,
        legacy=legacy is True,
    )
