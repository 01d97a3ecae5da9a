"""Password recovery tests — security question prompt and reset."""

import uuid

import pytest


def _name(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


async def _login(client, username: str, password: str) -> int:
    r = await client.post(
        "/api/v1/auth/login", json={"username": username, "password": password}
    )
    return r.status_code


@pytest.mark.asyncio
async def test_forgot_password_returns_only_the_question(client, signup):
    username = _name("ann")
    await signup(username, question="First pet?", answer="Rex")

    r = await client.post("/api/v1/auth/forgot-password", json={"username": username})
    assert r.status_code == 200
    assert r.json() == {"securityQuestion": "First pet?"}


@pytest.mark.asyncio
async def test_forgot_password_unknown_user(client):
    r = await client.post(
        "/api/v1/auth/forgot-password", json={"username": _name("nobody")}
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_reset_password_flow(client, signup):
    """forgot → reset → old password fails, new password works."""
    username = _name("ann")
    await signup(username, password="pw1", question="Q", answer="A")

    r = await client.post("/api/v1/auth/forgot-password", json={"username": username})
    assert r.json()["securityQuestion"] == "Q"

    r = await client.post(
        "/api/v1/auth/reset-password",
        json={"username": username, "securityAnswer": "a", "newPassword": "newpw"},
    )
    assert r.status_code == 200
    assert r.json()["success"] is True

    assert await _login(client, username, "pw1") == 401
    assert await _login(client, username, "newpw") == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("submitted", ["rex", "Rex", " Rex ", "REX\t"])
async def test_answer_is_case_and_whitespace_insensitive(client, signup, submitted):
    username = _name("pet")
    await signup(username, answer="rex")

    r = await client.post(
        "/api/v1/auth/reset-password",
        json={"username": username, "securityAnswer": submitted, "newPassword": "n"},
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_reset_wrong_answer_keeps_old_password(client, signup):
    username = _name("wrong")
    await signup(username, password="pw1", answer="rex")

    r = await client.post(
        "/api/v1/auth/reset-password",
        json={"username": username, "securityAnswer": "fido", "newPassword": "hijack"},
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Incorrect security answer"

    assert await _login(client, username, "pw1") == 200
    assert await _login(client, username, "hijack") == 401


@pytest.mark.asyncio
async def test_reset_unknown_user(client):
    r = await client.post(
        "/api/v1/auth/reset-password",
        json={"username": _name("ghost"), "securityAnswer": "a", "newPassword": "n"},
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_reset_keeps_existing_tokens_valid(client, signup):
    """A password reset does not revoke sessions (no revocation list)."""
    username = _name("keep")
    token, _ = await signup(username)

    await client.post(
        "/api/v1/auth/reset-password",
        json={"username": username, "securityAnswer": "A", "newPassword": "n"},
    )
    r = await client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 200
