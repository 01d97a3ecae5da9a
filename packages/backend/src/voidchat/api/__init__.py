"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. Health and auth routers are open; the ledger and
chat routers require a valid bearer token. The OAuth callback is mounted
separately at the app root (see api/oauth.py).
"""

from fastapi import APIRouter, Depends

from voidchat.api.auth import router as auth_router
from voidchat.api.chat import router as chat_router
from voidchat.api.health import router as health_router
from voidchat.api.messages import router as messages_router
from voidchat.api.oauth import callback_router as oauth_callback_router
from voidchat.api.oauth import router as oauth_router
from voidchat.auth.dependencies import get_current_account

# All protected routers require authentication
_auth = [Depends(get_current_account)]

api_router = APIRouter(prefix="/api/v1")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(oauth_router, tags=["auth", "oauth"])

# Protected routes: require a valid bearer token
api_router.include_router(messages_router, tags=["messages"], dependencies=_auth)
api_router.include_router(chat_router, tags=["chat"], dependencies=_auth)

__all__ = ["api_router", "oauth_callback_router"]
