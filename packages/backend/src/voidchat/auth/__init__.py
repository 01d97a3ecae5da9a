"""Authentication and authorization.

Learn: Two ways to obtain an identity, one way to present it:
1. Username/password (or Google sign-in) → signed JWT session token
2. Every protected request → Authorization: Bearer <token>

The token is self-contained ({sub: account id, username}); there is no
server-side session table, so a token stays valid until it expires (if
expiry is configured) or the signing secret changes.
"""
