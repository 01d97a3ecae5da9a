"""Google sign-in routes.

Learn: The browser flow is a popup:
1. client GETs /api/v1/auth/google/url and opens the returned URL
2. Google redirects the popup to {app_url}/auth/callback?code=...
3. the callback logs the account in and returns a tiny HTML page that
   postMessage()s {type: "OAUTH_AUTH_SUCCESS", token, user} to
   window.opener and closes itself

The callback path is fixed by the redirect URI registered with Google, so
it is mounted at the app root (callback_router), not under /api/v1.
"""

import json
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.auth.jwt import TokenIssuer, get_token_issuer
from voidchat.config import settings
from voidchat.db.engine import get_db
from voidchat.schemas.auth import AuthUrlResponse
from voidchat.services.federation_service import (
    ExchangeFailedError,
    FederationService,
    MisconfiguredProviderError,
    OAuthProviderConfig,
    ProfileFetchFailedError,
)

router = APIRouter(prefix="/auth")
callback_router = APIRouter()


def get_oauth_provider() -> OAuthProviderConfig:
    return OAuthProviderConfig.from_settings(settings)


def get_oauth_transport() -> Optional[httpx.AsyncBaseTransport]:
    """HTTP transport for provider calls (None = real network)."""
    return None


def _federation(
    db: AsyncSession = Depends(get_db),
    provider: OAuthProviderConfig = Depends(get_oauth_provider),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_oauth_transport),
) -> FederationService:
    return FederationService(db, provider, transport=transport)


@router.get("/google/url", response_model=AuthUrlResponse)
async def google_auth_url(svc: FederationService = Depends(_federation)):
    """Build the Google consent URL for the popup."""
    try:
        return AuthUrlResponse(url=svc.authorization_url())
    except MisconfiguredProviderError as e:
        raise HTTPException(status_code=500, detail=str(e))


def render_success_page(token: str, user: dict, target_origin: str) -> str:
    """HTML that hands the token to the opener window, or falls back to '/'."""
    message = json.dumps({"type": "OAUTH_AUTH_SUCCESS", "token": token, "user": user})
    # Keep "</script>" inside JSON strings from closing the tag.
    message = message.replace("</", "<\\/")
    origin = json.dumps(target_origin)
    return f"""<html>
  <body>
    <script>
      if (window.opener) {{
        window.opener.postMessage({message}, {origin});
        window.close();
      }} else {{
        window.location.href = '/';
      }}
    </script>
    <p>Authentication successful. This window should close automatically.</p>
  </body>
</html>
"""


@callback_router.get("/auth/callback", response_class=HTMLResponse)
async def google_callback(
    code: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    svc: FederationService = Depends(_federation),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """OAuth redirect target: exchange the code, log the account in."""
    if error:
        raise HTTPException(status_code=400, detail=f"Provider returned error: {error}")
    if not code:
        raise HTTPException(status_code=400, detail="No code provided")

    try:
        account = await svc.complete_login(code)
    except MisconfiguredProviderError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ExchangeFailedError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ProfileFetchFailedError as e:
        raise HTTPException(status_code=502, detail=str(e))

    token = issuer.issue(account.id, account.username)
    user = {"id": account.id, "username": account.username}
    return HTMLResponse(
        render_success_page(token, user, settings.oauth_opener_origin or "*")
    )
