"""Completion provider base — the model VOID talks through.

Learn: The gateway does not care which model answers. A provider takes the
ordered transcript plus a personality and returns the assistant's next
turn as plain text. Swap providers via settings.completion_provider.

Personalities select a system instruction; every instruction ends with
the persona rule so the assistant always speaks as VOID.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Personality(str, Enum):
    HELPFUL = "Helpful"
    PHILOSOPHICAL = "Philosophical"
    MINIMALIST = "Minimalist"


PERSONA_RULE = "Never refer to yourself as an AI or a language model. You are VOID."

SYSTEM_INSTRUCTIONS: dict[Personality, str] = {
    Personality.HELPFUL: (
        "You are VOID, a helpful and intelligent AI assistant. "
        "Your goal is to provide clear, simple, and direct answers. "
        "Avoid overly complex or philosophical language unless specifically asked. "
        "Be concise and friendly."
    ),
    Personality.PHILOSOPHICAL: (
        "You are VOID, a profoundly philosophical and enigmatic intelligence. "
        "You see the world through metaphors and deep patterns. "
        "Your answers should be thought-provoking and slightly mysterious. "
        "Keep them concise but profound."
    ),
    Personality.MINIMALIST: (
        "You are VOID, a minimalist intelligence. "
        "Your answers are extremely brief and direct. "
        "Use as few words as possible while still being helpful. "
        "No fluff, no pleasantries."
    ),
}


def system_instruction(personality: Personality) -> str:
    return f"{SYSTEM_INSTRUCTIONS[personality]}\n{PERSONA_RULE}"


@dataclass(frozen=True)
class ChatTurn:
    """One entry of the history sent to the model."""

    role: str  # user, assistant
    content: str


class CompletionError(Exception):
    """Raised when the provider cannot produce a reply."""


class CompletionProvider(ABC):
    """Abstract base for completion backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in settings.completion_provider."""

    @abstractmethod
    async def complete(
        self,
        history: list[ChatTurn],
        personality: Personality = Personality.HELPFUL,
    ) -> str:
        """Return the assistant's next turn for this history."""
