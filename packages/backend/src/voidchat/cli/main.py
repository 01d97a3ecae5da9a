"""VOID CLI — talk to a VOID backend from the terminal.

Usage:
    voidchat signup                      # Create an account (prompts)
    voidchat login                       # Log in, store the session token
    voidchat logout                      # Forget the stored token
    voidchat forgot ann                  # Show ann's security question
    voidchat reset ann                   # Answer it and choose a new password
    voidchat history                     # Print your transcript
    voidchat say "hello" -p Minimalist   # Send a turn, print VOID's reply
    voidchat serve                       # Run the API server (uvicorn)
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"
PERSONALITIES = ["Helpful", "Philosophical", "Minimalist"]


def _api_url() -> str:
    return os.environ.get("VOIDCHAT_API_URL", DEFAULT_API_URL).rstrip("/")


def _token_file() -> Path:
    override = os.environ.get("VOIDCHAT_TOKEN_FILE")
    if override:
        return Path(override)
    return Path.home() / ".voidchat" / "token"


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the VOID backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=90.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when an event loop is already running (tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _save_token(token: str) -> None:
    path = _token_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(token)
    path.chmod(0o600)


def _load_token() -> str:
    path = _token_file()
    if not path.exists():
        click.secho("Not logged in. Run: voidchat login", fg="red", err=True)
        sys.exit(1)
    return path.read_text().strip()


def _auth_headers() -> dict:
    return {"Authorization": f"Bearer {_load_token()}"}


def _fail(response: httpx.Response) -> None:
    """Print the server's error detail and exit 1."""
    try:
        detail = response.json().get("detail", response.text)
    except ValueError:
        detail = response.text
    click.secho(f"Error ({response.status_code}): {detail}", fg="red", err=True)
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="voidchat")
def main():
    """VOID — accounts and persistent conversations with the VOID assistant."""


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.option("--username", "-u", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--question", prompt="Security question")
@click.option("--answer", prompt="Security answer", hide_input=True)
def signup(username: str, password: str, question: str, answer: str):
    """Create an account and log in."""
    _run(_signup_impl(username, password, question, answer))


async def _signup_impl(username: str, password: str, question: str, answer: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/signup", json={
            "username": username,
            "password": password,
            "securityQuestion": question,
            "securityAnswer": answer,
        })
    if r.status_code != 201:
        _fail(r)
    _save_token(r.json()["token"])
    click.secho(f"Account created. Logged in as {username}.", fg="green")


@main.command()
@click.option("--username", "-u", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(username: str, password: str):
    """Log in and store the session token."""
    _run(_login_impl(username, password))


async def _login_impl(username: str, password: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/login", json={
            "username": username,
            "password": password,
        })
    if r.status_code != 200:
        _fail(r)
    _save_token(r.json()["token"])
    click.secho(f"Logged in as {username}.", fg="green")


@main.command()
def logout():
    """Forget the stored session token."""
    path = _token_file()
    if path.exists():
        path.unlink()
    click.echo("Logged out.")


@main.command()
@click.argument("username")
def forgot(username: str):
    """Show the security question for USERNAME."""
    _run(_forgot_impl(username))


async def _forgot_impl(username: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/forgot-password", json={"username": username})
    if r.status_code != 200:
        _fail(r)
    click.echo(r.json()["securityQuestion"])


@main.command()
@click.argument("username")
@click.option("--answer", prompt="Security answer", hide_input=True)
@click.option("--new-password", prompt=True, hide_input=True, confirmation_prompt=True)
def reset(username: str, answer: str, new_password: str):
    """Reset USERNAME's password using the security answer."""
    _run(_reset_impl(username, answer, new_password))


async def _reset_impl(username: str, answer: str, new_password: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/reset-password", json={
            "username": username,
            "securityAnswer": answer,
            "newPassword": new_password,
        })
    if r.status_code != 200:
        _fail(r)
    click.secho("Password reset. Log in with the new password.", fg="green")


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


@main.command()
def history():
    """Print your transcript, oldest first."""
    _run(_history_impl())


async def _history_impl():
    headers = _auth_headers()
    async with _client() as c:
        r = await c.get("/api/v1/messages", headers=headers)
    if r.status_code != 200:
        _fail(r)

    messages = r.json()
    if not messages:
        click.echo("No messages yet.")
        return
    for m in messages:
        who = click.style("you ", fg="cyan") if m["role"] == "user" else click.style("VOID", fg="magenta")
        click.echo(f"{who}  {m['content']}")


@main.command()
@click.argument("message")
@click.option(
    "--personality", "-p",
    type=click.Choice(PERSONALITIES),
    default="Helpful",
    show_default=True,
)
def say(message: str, personality: str):
    """Send MESSAGE to VOID and print the reply."""
    _run(_say_impl(message, personality))


async def _say_impl(message: str, personality: str):
    headers = _auth_headers()
    async with _client() as c:
        r = await c.post(
            "/api/v1/chat",
            json={"content": message, "personality": personality},
            headers=headers,
        )
    if r.status_code != 200:
        _fail(r)
    click.echo(r.json()["content"])


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: VOIDCHAT_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: VOIDCHAT_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from voidchat.config import settings

    uvicorn.run(
        "voidchat.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
