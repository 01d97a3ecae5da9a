"""Chat gateway — one user turn in, one assistant turn out.

Learn: The gateway composes the ledger with a completion provider:
1. append the user's message
2. read back the full transcript (ordered)
3. ask the provider for the next turn with the chosen personality
4. append and return the assistant's message

If the provider fails, the user's message stays in the ledger and
CompletionError propagates; the client can simply send again.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.completion import ChatTurn, CompletionError, CompletionProvider, Personality
from voidchat.db.models import ROLE_ASSISTANT, ROLE_USER, Message
from voidchat.services.ledger_service import LedgerService

logger = structlog.get_logger()


class ChatService:
    def __init__(self, db: AsyncSession, provider: CompletionProvider):
        self.ledger = LedgerService(db)
        self.provider = provider

    async def send(
        self,
        account_id: int,
        content: str,
        personality: Personality = Personality.HELPFUL,
    ) -> Message:
        await self.ledger.append(account_id, ROLE_USER, content)
        transcript = await self.ledger.list_for_account(account_id)
        history = [ChatTurn(role=m.role, content=m.content) for m in transcript]

        try:
            reply = await self.provider.complete(history, personality)
        except CompletionError as e:
            logger.warning(
                "chat.completion_failed",
                account_id=account_id,
                provider=self.provider.name,
                error=str(e),
            )
            raise

        return await self.ledger.append(account_id, ROLE_ASSISTANT, reply)
