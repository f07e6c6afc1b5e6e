from __future__ import annotations

from dataclasses import dataclass

from assistant_engine.clients.providers import AIProvider
from assistant_engine.models.status import ProviderStatus


@dataclass(frozen=True)
class ProviderSelection:
    active: AIProvider | None
    changed: bool


def select_active(status: ProviderStatus, previous_active: AIProvider | None) -> ProviderSelection:
    """Pick the highest-priority available provider.

    No stickiness: a session moves back to a higher-priority provider as soon
    as the latest probe reports it available.
    """
    candidates = status.services.available_providers()
    active = candidates[0] if candidates else None
    return ProviderSelection(active=active, changed=active != previous_active)


def fallback_notice(previous: AIProvider | None, active: AIProvider | None) -> str | None:
    """User-facing notice for a provider change within a session.

    The first selection of a session (``previous`` is None) is not a change
    worth announcing.
    """
    if previous is None or previous == active:
        return None
    if active is None:
        return (
            f"Note: {previous.display_name} is no longer available and no other AI "
            "service is responding right now. Please try again in a moment."
        )
    return (
        f"Note: I'm now using {active.display_name} because {previous.display_name} "
        "is currently unavailable. I'll continue to assist you with the best "
        "available service."
    )
