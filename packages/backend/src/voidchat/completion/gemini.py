"""Gemini completion provider (Generative Language REST API over httpx)."""

from typing import Optional

import httpx
import structlog

from voidchat.completion.base import (
    ChatTurn,
    CompletionError,
    CompletionProvider,
    Personality,
    system_instruction,
)
from voidchat.config import settings

logger = structlog.get_logger()


def build_request(history: list[ChatTurn], personality: Personality) -> dict:
    """Translate the transcript into a generateContent body.

    Gemini calls the assistant side "model".
    """
    return {
        "systemInstruction": {"parts": [{"text": system_instruction(personality)}]},
        "contents": [
            {
                "role": "user" if turn.role == "user" else "model",
                "parts": [{"text": turn.content}],
            }
            for turn in history
        ],
        "generationConfig": {"temperature": 0.7, "topP": 0.9},
    }


def extract_text(data: dict) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


class GeminiProvider(CompletionProvider):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.completion_timeout_seconds
        self.transport = transport

    @property
    def name(self) -> str:
        return "gemini"

    async def complete(
        self,
        history: list[ChatTurn],
        personality: Personality = Personality.HELPFUL,
    ) -> str:
        if not self.api_key:
            raise CompletionError("Completion provider is not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(
                    url,
                    json=build_request(history, personality),
                    headers={"x-goog-api-key": self.api_key},
                )
        except httpx.HTTPError as e:
            logger.warning("completion.request_failed", provider=self.name, error=str(e))
            raise CompletionError("Completion request failed") from e

        if response.status_code >= 400:
            logger.warning(
                "completion.request_failed",
                provider=self.name,
                status=response.status_code,
                body=response.text[:500],
            )
            raise CompletionError(f"Completion provider returned {response.status_code}")

        try:
            text = extract_text(response.json())
        except ValueError as e:
            raise CompletionError("Completion provider returned invalid JSON") from e
        if not text:
            raise CompletionError("Completion provider returned no text")
        return text
