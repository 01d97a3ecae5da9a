"""Chat gateway route — send a turn, get VOID's reply."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.auth.dependencies import CurrentIdentity, get_current_account
from voidchat.completion import CompletionError, CompletionProvider, get_provider
from voidchat.config import settings
from voidchat.db.engine import get_db
from voidchat.schemas.message import ChatRequest, MessageRead
from voidchat.services.chat_service import ChatService

router = APIRouter()


def get_completion_provider() -> CompletionProvider:
    return get_provider(settings.completion_provider)


def _chat(
    db: AsyncSession = Depends(get_db),
    provider: CompletionProvider = Depends(get_completion_provider),
) -> ChatService:
    return ChatService(db, provider)


@router.post("/chat", response_model=MessageRead)
async def chat(
    body: ChatRequest,
    identity: CurrentIdentity = Depends(get_current_account),
    svc: ChatService = Depends(_chat),
):
    """Append the user's turn, ask the model, append and return its reply."""
    try:
        return await svc.send(identity.account_id, body.content, body.personality)
    except CompletionError as e:
        raise HTTPException(status_code=502, detail=str(e))
