"""Session token issuance and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. A token
asserts {sub: account id, username} plus its issuance time (iat) and a
random jti, so two tokens for the same account never collide.

The signing secret is held by a TokenIssuer instance rather than read from
a global on every call. get_token_issuer() builds the app's issuer once
from settings; tests (or a secret rotation) swap in another instance via
FastAPI dependency overrides.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt

from voidchat.config import settings


class TokenError(Exception):
    """Raised when a token is malformed, forged or otherwise invalid."""


class TokenExpiredError(TokenError):
    """Raised when a token's exp has passed (only with an expiry policy)."""


@dataclass(frozen=True)
class TokenClaims:
    account_id: int
    username: str


class TokenIssuer:
    """Signs and verifies session tokens with one fixed secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in_seconds: Optional[int] = None,
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expires_in_seconds = expires_in_seconds

    def issue(self, account_id: int, username: str) -> str:
        """Create a signed token for an account."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(account_id),
            "username": username,
            "iat": now,
            "jti": secrets.token_hex(8),
        }
        if self.expires_in_seconds is not None:
            payload["exp"] = now + timedelta(seconds=self.expires_in_seconds)
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Returns the claims on success.
        Raises TokenExpiredError or TokenError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        username = payload.get("username")
        try:
            account_id = int(payload["sub"])
        except (TypeError, ValueError):
            raise TokenError("Invalid token: malformed subject")
        if not isinstance(username, str) or not username:
            raise TokenError("Invalid token: missing username")
        return TokenClaims(account_id=account_id, username=username)


@lru_cache(maxsize=1)
def get_token_issuer() -> TokenIssuer:
    """FastAPI dependency — the process-wide issuer, built once from settings."""
    return TokenIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in_seconds=settings.token_expire_seconds,
    )
