"""Account service — credential store and security-question recovery.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.

Uniqueness is owned by the database: create_account() inserts and lets
the uq_accounts_username constraint reject duplicates. There is no
"SELECT then INSERT" check, so two concurrent signups for the same
username cannot both succeed.

Login failures are deliberately uniform: an unknown username, a wrong
password and a password attempt against a Google account all raise
InvalidCredentialError, and all cost one bcrypt check, so callers cannot
enumerate usernames through login.

Recovery is two independent, stateless calls: get_recovery_prompt()
exposes only the question, complete_recovery() re-verifies the answer and
replaces the password hash in one request. No recovery grant is kept
between them.
"""

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.auth.password import (
    dummy_hash,
    hash_answer,
    hash_password,
    verify_answer,
    verify_password,
)
from voidchat.db.models import PROVIDER_PASSWORD, Account

logger = structlog.get_logger()


class DuplicateUsernameError(Exception):
    """Raised when the username is already taken."""


class InvalidCredentialError(Exception):
    """Raised for an unknown username or a wrong password (indistinguishable)."""


class AccountNotFoundError(Exception):
    pass


class WrongAnswerError(Exception):
    pass


def is_username_conflict(exc: IntegrityError) -> bool:
    """True when an IntegrityError comes from the username unique constraint.

    PostgreSQL reports the constraint name, sqlite reports "accounts.username".
    """
    message = str(exc.orig)
    return "uq_accounts_username" in message or "accounts.username" in message


class AccountService:
    """Business logic for accounts, logins and password recovery."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Credential store ───────────────────────────────

    async def create_account(
        self,
        username: str,
        password: str,
        security_question: str,
        security_answer: str,
    ) -> Account:
        """Create a password account; atomic check-and-insert on username."""
        account = Account(
            username=username,
            identity_provider=PROVIDER_PASSWORD,
            password_hash=hash_password(password),
            security_question=security_question,
            security_answer_hash=hash_answer(security_answer),
        )
        self.db.add(account)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_username_conflict(e):
                raise
            logger.info("account.duplicate_username", username=username)
            raise DuplicateUsernameError(username) from e

        await self.db.commit()
        await self.db.refresh(account)
        logger.info("account.created", account_id=account.id, provider=PROVIDER_PASSWORD)
        return account

    async def get_by_username(self, username: str) -> Account | None:
        result = await self.db.execute(
            select(Account).where(Account.username == username)
        )
        return result.scalars().first()

    async def get_account(self, account_id: int) -> Account | None:
        return await self.db.get(Account, account_id)

    async def verify_credential(self, username: str, password: str) -> Account:
        """Return the account if username+password match, else InvalidCredentialError."""
        account = await self.get_by_username(username)
        if account is None:
            verify_password(password, dummy_hash())
            logger.info("auth.login_failed")
            raise InvalidCredentialError()

        if account.password_hash is None:
            # Federated account: pay the same bcrypt cost, never succeed.
            verify_password(password, dummy_hash())
            logger.info("auth.login_failed", account_id=account.id)
            raise InvalidCredentialError()

        if not verify_password(password, account.password_hash):
            logger.info("auth.login_failed")
            raise InvalidCredentialError()

        return account

    async def reset_credential(self, account_id: int, new_password: str) -> None:
        """Overwrite the password hash. Outstanding tokens stay valid."""
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(password_hash=hash_password(new_password))
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise AccountNotFoundError(account_id)
        await self.db.commit()
        logger.info("account.password_reset", account_id=account_id)

    # ─── Recovery ───────────────────────────────────────

    async def get_recovery_prompt(self, username: str) -> str:
        """Return the account's security question (and nothing else)."""
        account = await self.get_by_username(username)
        if account is None or account.security_question is None:
            raise AccountNotFoundError(username)
        return account.security_question

    async def verify_recovery_answer(self, username: str, answer: str) -> Account:
        """Check a recovery answer (case- and whitespace-insensitive)."""
        account = await self.get_by_username(username)
        if account is None:
            raise AccountNotFoundError(username)

        # Federated accounts have no answer hash, so this always fails for them.
        if not verify_answer(answer, account.security_answer_hash):
            logger.info("recovery.wrong_answer", account_id=account.id)
            raise WrongAnswerError()
        return account

    async def complete_recovery(
        self, username: str, answer: str, new_password: str
    ) -> Account:
        """Verify the answer, then replace the password, in one call."""
        account = await self.verify_recovery_answer(username, answer)
        await self.reset_credential(account.id, new_password)
        return account
