"""Federated identity bridge — Google OAuth authorization-code login.

Learn: One login attempt is a linear sequence, each step with its own
failure kind:

1. authorization_url()   → provider consent URL       (MisconfiguredProviderError)
2. exchange_code(code)   → provider access token      (ExchangeFailedError)
3. fetch_profile(token)  → verified email             (ProfileFetchFailedError)
4. provision_or_match()  → local Account (idempotent)
5. caller mints a session token

Steps 2 and 3 are awaited one after the other on a single httpx client
with an explicit timeout; a timeout surfaces as the step's own error.
Nothing is retried — the whole flow is safe to restart from step 1.

Provisioning relies on the same username unique constraint as signup:
if two callbacks for one email race, the loser's INSERT fails and it
re-reads the winner's row, so exactly one account exists.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.config import Settings
from voidchat.db.models import PROVIDER_GOOGLE, Account
from voidchat.services.account_service import is_username_conflict

logger = structlog.get_logger()

FEDERATED_SECURITY_QUESTION = "Signed in with Google"


class MisconfiguredProviderError(Exception):
    pass


class ExchangeFailedError(Exception):
    pass


class ProfileFetchFailedError(Exception):
    pass


@dataclass(frozen=True)
class OAuthProviderConfig:
    """Static description of the OAuth provider this service talks to."""

    client_id: str
    client_secret: str
    auth_url: str
    token_url: str
    userinfo_url: str
    redirect_uri: str
    scope: str = "openid email profile"
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "OAuthProviderConfig":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            auth_url=settings.google_auth_url,
            token_url=settings.google_token_url,
            userinfo_url=settings.google_userinfo_url,
            redirect_uri=settings.oauth_redirect_uri,
            timeout_seconds=settings.oauth_timeout_seconds,
        )


@dataclass(frozen=True)
class FederatedProfile:
    email: str
    subject: Optional[str] = None
    name: Optional[str] = None


class FederationService:
    """Exchanges a provider authorization code for a local account."""

    def __init__(
        self,
        db: AsyncSession,
        provider: OAuthProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.provider = provider
        self.transport = transport

    # ─── Step 1: request ────────────────────────────────

    def authorization_url(self) -> str:
        if not self.provider.client_id:
            raise MisconfiguredProviderError("OAuth client id is not configured")
        params = {
            "client_id": self.provider.client_id,
            "redirect_uri": self.provider.redirect_uri,
            "response_type": "code",
            "scope": self.provider.scope,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self.provider.auth_url}?{urlencode(params)}"

    # ─── Steps 2-5 ──────────────────────────────────────

    async def complete_login(self, code: str) -> Account:
        """Run the callback half of the flow and return the local account."""
        if not self.provider.client_id or not self.provider.client_secret:
            raise MisconfiguredProviderError("OAuth credentials are not configured")

        async with httpx.AsyncClient(
            timeout=self.provider.timeout_seconds, transport=self.transport
        ) as client:
            access_token = await self.exchange_code(client, code)
            profile = await self.fetch_profile(client, access_token)

        return await self.provision_or_match(profile.email)

    async def exchange_code(self, client: httpx.AsyncClient, code: str) -> str:
        try:
            response = await client.post(
                self.provider.token_url,
                data={
                    "code": code,
                    "client_id": self.provider.client_id,
                    "client_secret": self.provider.client_secret,
                    "redirect_uri": self.provider.redirect_uri,
                    "grant_type": "authorization_code",
                },
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning("oauth.exchange_failed", error=str(e))
            raise ExchangeFailedError("Token exchange request failed") from e

        if response.status_code >= 400:
            logger.warning(
                "oauth.exchange_failed",
                status=response.status_code,
                body=response.text[:500],
            )
            raise ExchangeFailedError("Failed to exchange code for tokens")

        try:
            access_token = response.json().get("access_token")
        except ValueError:
            access_token = None
        if not access_token:
            logger.warning("oauth.exchange_failed", error="missing access_token")
            raise ExchangeFailedError("Provider returned no access token")
        return access_token

    async def fetch_profile(
        self, client: httpx.AsyncClient, access_token: str
    ) -> FederatedProfile:
        try:
            response = await client.get(
                self.provider.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("oauth.profile_fetch_failed", error=str(e))
            raise ProfileFetchFailedError("Profile request failed") from e

        if response.status_code >= 400:
            logger.warning("oauth.profile_fetch_failed", status=response.status_code)
            raise ProfileFetchFailedError("Failed to fetch user info from provider")

        try:
            data = response.json()
        except ValueError as e:
            raise ProfileFetchFailedError("Provider profile is not JSON") from e

        email = data.get("email")
        if not email:
            raise ProfileFetchFailedError("Provider profile has no email")
        if data.get("email_verified") is False:
            raise ProfileFetchFailedError("Provider email is not verified")

        return FederatedProfile(email=email, subject=data.get("sub"), name=data.get("name"))

    async def provision_or_match(self, email: str) -> Account:
        """Return the account whose username is this email, creating it if absent."""
        existing = await self._get_by_username(email)
        if existing is not None:
            logger.info("oauth.account_matched", account_id=existing.id)
            return existing

        account = Account(
            username=email,
            identity_provider=PROVIDER_GOOGLE,
            password_hash=None,
            security_question=FEDERATED_SECURITY_QUESTION,
            security_answer_hash=None,
        )
        self.db.add(account)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_username_conflict(e):
                raise
            # A concurrent callback created it first.
            winner = await self._get_by_username(email)
            if winner is None:
                raise
            logger.info("oauth.account_matched", account_id=winner.id, raced=True)
            return winner

        await self.db.commit()
        await self.db.refresh(account)
        logger.info("account.created", account_id=account.id, provider=PROVIDER_GOOGLE)
        return account

    async def _get_by_username(self, username: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(Account.username == username)
        )
        return result.scalars().first()
