"""Conversation ledger — the append-only per-account message log.

Learn: Messages are only ever INSERTed; there is no update or delete path.
Every read is filtered by account_id, and the account_id always comes
from the verified session token (see auth/dependencies.py), which is
what keeps one account from ever seeing another's transcript.

Read order is created_at ascending, then id ascending, so two rows stamped
in the same clock tick still come back in insertion order.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.db.models import MESSAGE_ROLES, Message

logger = structlog.get_logger()


class LedgerService:
    """Append and read an account's transcript."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, account_id: int, role: str, content: str) -> Message:
        """Append one message. Single INSERT, committed or not at all."""
        if role not in MESSAGE_ROLES:
            raise ValueError(f"Unknown message role '{role}'")

        message = Message(account_id=account_id, role=role, content=content)
        self.db.add(message)
        await self.db.commit()
        await self.db.refresh(message)
        logger.info(
            "ledger.appended",
            account_id=account_id,
            message_id=message.id,
            role=role,
        )
        return message

    async def list_for_account(self, account_id: int) -> list[Message]:
        result = await self.db.execute(
            select(Message)
            .where(Message.account_id == account_id)
            .order_by(Message.created_at, Message.id)
        )
        return list(result.scalars().all())
