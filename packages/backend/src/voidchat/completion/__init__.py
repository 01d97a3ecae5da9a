"""Completion provider registry.

Learn: The chat gateway asks for a provider by name:
    provider = get_provider(settings.completion_provider)
    reply = await provider.complete(history, Personality.MINIMALIST)

Register another backend without touching the core:
    register_provider("my_model", MyModelProvider)
"""

from voidchat.completion.base import (
    ChatTurn,
    CompletionError,
    CompletionProvider,
    Personality,
)
from voidchat.completion.gemini import GeminiProvider

__all__ = [
    "ChatTurn",
    "CompletionError",
    "CompletionProvider",
    "Personality",
    "get_provider",
    "list_providers",
    "register_provider",
]

# ─── Registry ──────────────────────────────────────────────

_PROVIDERS: dict[str, type[CompletionProvider]] = {
    "gemini": GeminiProvider,
}


def get_provider(name: str) -> CompletionProvider:
    """Get a provider instance by name.

    Raises ValueError if the provider is not registered.
    """
    cls = _PROVIDERS.get(name)
    if not cls:
        available = ", ".join(sorted(_PROVIDERS.keys()))
        raise ValueError(f"Unknown completion provider '{name}'. Available: {available}")
    return cls()


def list_providers() -> list[str]:
    return sorted(_PROVIDERS.keys())


def register_provider(name: str, provider_cls: type[CompletionProvider]) -> None:
    _PROVIDERS[name] = provider_cls
