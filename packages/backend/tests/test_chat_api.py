"""Chat gateway tests — one turn in, one reply out, both in the ledger.

Learn: get_completion_provider is overridden with a scripted provider, so
tests can assert exactly which history and personality reached the model.
"""

import uuid

import pytest

from voidchat.api.chat import get_completion_provider
from voidchat.completion import ChatTurn, CompletionError, CompletionProvider, Personality
from voidchat.main import app


class ScriptedProvider(CompletionProvider):
    """Replies from a fixed list and records every call."""

    def __init__(self, replies=None, fail=False):
        self.replies = list(replies or ["ok"])
        self.fail = fail
        self.calls: list[tuple[list[ChatTurn], Personality]] = []

    @property
    def name(self) -> str:
        return "scripted"

    async def complete(self, history, personality=Personality.HELPFUL):
        self.calls.append((list(history), personality))
        if self.fail:
            raise CompletionError("model unavailable")
        return self.replies.pop(0)


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _use(provider: CompletionProvider) -> CompletionProvider:
    app.dependency_overrides[get_completion_provider] = lambda: provider
    return provider


@pytest.mark.asyncio
async def test_chat_appends_both_turns(client, signup):
    provider = _use(ScriptedProvider(["Greetings."]))
    token, _ = await signup(f"chat-{uuid.uuid4().hex[:8]}")

    r = await client.post("/api/v1/chat", json={"content": "hi"}, headers=_auth(token))
    assert r.status_code == 200
    reply = r.json()
    assert reply["role"] == "assistant"
    assert reply["content"] == "Greetings."
    assert "createdAt" in reply

    history, personality = provider.calls[0]
    assert history == [ChatTurn(role="user", content="hi")]
    assert personality == Personality.HELPFUL

    r = await client.get("/api/v1/messages", headers=_auth(token))
    assert [(m["role"], m["content"]) for m in r.json()] == [
        ("user", "hi"),
        ("assistant", "Greetings."),
    ]


@pytest.mark.asyncio
async def test_chat_sends_full_history_and_personality(client, signup):
    provider = _use(ScriptedProvider(["one", "two"]))
    token, _ = await signup(f"hist-{uuid.uuid4().hex[:8]}")

    await client.post("/api/v1/chat", json={"content": "a"}, headers=_auth(token))
    await client.post(
        "/api/v1/chat",
        json={"content": "b", "personality": "Minimalist"},
        headers=_auth(token),
    )

    history, personality = provider.calls[1]
    assert [(t.role, t.content) for t in history] == [
        ("user", "a"),
        ("assistant", "one"),
        ("user", "b"),
    ]
    assert personality == Personality.MINIMALIST


@pytest.mark.asyncio
async def test_chat_provider_failure_keeps_user_turn(client, signup):
    _use(ScriptedProvider(fail=True))
    token, _ = await signup(f"fail-{uuid.uuid4().hex[:8]}")

    r = await client.post("/api/v1/chat", json={"content": "hello?"}, headers=_auth(token))
    assert r.status_code == 502
    assert r.json()["detail"] == "model unavailable"

    r = await client.get("/api/v1/messages", headers=_auth(token))
    assert [(m["role"], m["content"]) for m in r.json()] == [("user", "hello?")]


@pytest.mark.asyncio
async def test_chat_rejects_unknown_personality(client, signup):
    _use(ScriptedProvider())
    token, _ = await signup(f"pers-{uuid.uuid4().hex[:8]}")
    r = await client.post(
        "/api/v1/chat",
        json={"content": "hi", "personality": "Sarcastic"},
        headers=_auth(token),
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_chat_requires_token(client):
    _use(ScriptedProvider())
    r = await client.post("/api/v1/chat", json={"content": "hi"})
    assert r.status_code == 401
