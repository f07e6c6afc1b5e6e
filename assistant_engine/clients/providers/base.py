"""Base types for the interchangeable AI backends."""

from __future__ import annotations

from enum import Enum


class AIProvider(str, Enum):
    """Backends the marketplace assistant can be served by."""

    DEEPSEEK = "deepseek"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"

    @classmethod
    def from_string(cls, value: str) -> AIProvider:
        """Convert string to AIProvider enum.

        Args:
            value: Provider name (case-insensitive).

        Returns:
            AIProvider enum value.

        Raises:
            ValueError: If provider is not supported.
        """
        normalized = value.lower().strip()
        for provider in cls:
            if provider.value == normalized:
                return provider
        supported = ", ".join(p.value for p in cls)
        raise ValueError(f"Unsupported provider '{value}'. Supported: {supported}")

    @property
    def display_name(self) -> str:
        return PROVIDER_DISPLAY_NAMES[self]


# Highest priority first. Selection always prefers the earliest available entry.
PROVIDER_PRIORITY: tuple[AIProvider, ...] = (
    AIProvider.DEEPSEEK,
    AIProvider.ANTHROPIC,
    AIProvider.OLLAMA,
)

PROVIDER_DISPLAY_NAMES: dict[AIProvider, str] = {
    AIProvider.DEEPSEEK: "DeepSeek R1",
    AIProvider.ANTHROPIC: "Anthropic Claude",
    AIProvider.OLLAMA: "Ollama",
}


def parse_provider(value: object) -> AIProvider | None:
    """Lenient variant of ``AIProvider.from_string`` for untrusted payloads."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return AIProvider.from_string(value)
    except ValueError:
        return None
