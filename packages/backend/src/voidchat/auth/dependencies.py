"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract and
validate the caller's identity from the Authorization header.

The two denial cases stay distinguishable at the boundary:
- no token at all            → 401 Unauthenticated (WWW-Authenticate: Bearer)
- token present but rejected → 403 Forbidden (bad signature, expired, garbage)
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from voidchat.auth.jwt import TokenError, TokenIssuer, get_token_issuer


class CurrentIdentity:
    """The authenticated account making the request.

    Learn: account_id comes only from the verified token. Ledger reads and
    writes are scoped to it; no route accepts an account id from the client.
    """

    def __init__(self, account_id: int, username: str):
        self.account_id = account_id
        self.username = username


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    _, _, token = authorization.strip().partition(" ")
    return token.strip() or None


async def get_current_account(
    authorization: Optional[str] = Header(None),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> CurrentIdentity:
    """Resolve the caller (required — 401 if absent, 403 if rejected)."""
    token = _extract_bearer(authorization)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not authorization.strip().lower().startswith("bearer "):
        raise HTTPException(status_code=403, detail="Unsupported authorization scheme")

    try:
        claims = issuer.verify(token)
    except TokenError as e:
        raise HTTPException(status_code=403, detail=str(e))

    return CurrentIdentity(account_id=claims.account_id, username=claims.username)
