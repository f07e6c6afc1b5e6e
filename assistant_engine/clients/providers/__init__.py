"""AI provider identities shared by the probe, selector and dispatcher.

The assistant backend can be served by one of several interchangeable
providers. This package defines their identities, the fixed priority order
used for selection, and the names shown to users:

    from assistant_engine.clients.providers import AIProvider, PROVIDER_PRIORITY

    provider = AIProvider.from_string("DeepSeek")
"""

from assistant_engine.clients.providers.base import (
    PROVIDER_DISPLAY_NAMES,
    PROVIDER_PRIORITY,
    AIProvider,
    parse_provider,
)

__all__ = [
    "AIProvider",
    "PROVIDER_DISPLAY_NAMES",
    "PROVIDER_PRIORITY",
    "parse_provider",
]
