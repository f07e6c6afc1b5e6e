from __future__ import annotations

from dataclasses import asdict, dataclass, field

from assistant_engine.clients.providers import PROVIDER_PRIORITY, AIProvider


@dataclass(frozen=True)
class ServiceFlags:
    deepseek: bool = False
    anthropic: bool = False
    ollama: bool = False
    legacy: bool = False

    def is_available(self, provider: AIProvider) -> bool:
        return bool(getattr(self, provider.value))

    def available_providers(self) -> list[AIProvider]:
        """Available providers, highest priority first. ``legacy`` never counts."""
        return [provider for provider in PROVIDER_PRIORITY if self.is_available(provider)]

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class ProviderStatus:
    available: bool = False
    services: ServiceFlags = field(default_factory=ServiceFlags)
    primary_service: AIProvider | None = None

    @classmethod
    def unavailable(cls) -> ProviderStatus:
        return cls()

    def to_dict(self) -> dict[str, object]:
        return {
            "available": self.available,
            "services": self.services.to_dict(),
            "primaryService": None if self.primary_service is None else self.primary_service.value,
        }
