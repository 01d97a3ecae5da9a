"""Message ledger routes.

Learn: Neither route takes an account id. The owner is always the
account in the bearer token (CurrentIdentity), so a caller can only ever
read or extend their own transcript.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.auth.dependencies import CurrentIdentity, get_current_account
from voidchat.db.engine import get_db
from voidchat.schemas.message import AppendResponse, MessageCreate, MessageRead
from voidchat.services.ledger_service import LedgerService

router = APIRouter()


def _ledger(db: AsyncSession = Depends(get_db)) -> LedgerService:
    return LedgerService(db)


@router.get("/messages", response_model=list[MessageRead])
async def list_messages(
    identity: CurrentIdentity = Depends(get_current_account),
    svc: LedgerService = Depends(_ledger),
):
    """The caller's transcript, oldest first."""
    return await svc.list_for_account(identity.account_id)


@router.post("/messages", response_model=AppendResponse, status_code=201)
async def append_message(
    body: MessageCreate,
    identity: CurrentIdentity = Depends(get_current_account),
    svc: LedgerService = Depends(_ledger),
):
    await svc.append(identity.account_id, body.role, body.content)
    return AppendResponse()
