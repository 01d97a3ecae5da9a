"""Password and recovery-answer hashing.

Learn: Uses bcrypt for secure hashing. bcrypt automatically handles
salting; the work factor comes from settings.bcrypt_rounds (10 by
default, ~50ms per hash). Inputs are truncated to 72 bytes (bcrypt's
limit).

Security answers go through the same hash after normalize_answer(), so
" Rex " and "rex" verify identically.
"""

from functools import lru_cache
from typing import Optional

import bcrypt

from voidchat.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a secret with bcrypt. Produces a "$2b$..." string."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a secret against its bcrypt hash.

    A missing or malformed hash never verifies.
    """
    if not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def normalize_answer(answer: str) -> str:
    return answer.strip().lower()


def hash_answer(answer: str) -> str:
    return hash_password(normalize_answer(answer))


def verify_answer(answer: str, answer_hash: Optional[str]) -> bool:
    return verify_password(normalize_answer(answer), answer_hash)


@lru_cache(maxsize=1)
def dummy_hash() -> str:
    """A throwaway hash for equal-cost checks against unknown usernames."""
    return hash_password("voidchat-no-such-account")
