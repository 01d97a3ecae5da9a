"""Auth API — signup, login, password recovery, current identity.

Learn: Routes for the password side of authentication:
- POST /auth/signup → create an account, returns token + summary
- POST /auth/login → username/password → token + summary
- POST /auth/forgot-password → username → security question
- POST /auth/reset-password → username + answer + new password
- GET /auth/me → who the bearer token belongs to

Google sign-in lives in api/oauth.py.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from voidchat.auth.dependencies import CurrentIdentity, get_current_account
from voidchat.auth.jwt import TokenIssuer, get_token_issuer
from voidchat.db.engine import get_db
from voidchat.schemas.auth import (
    AccountSummary,
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    ResetPasswordRequest,
    ResetPasswordResponse,
    SecurityQuestionResponse,
    SignupRequest,
)
from voidchat.services.account_service import (
    AccountNotFoundError,
    AccountService,
    DuplicateUsernameError,
    InvalidCredentialError,
    WrongAnswerError,
)

router = APIRouter(prefix="/auth")


def _accounts(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


# ─── Signup / login ──────────────────────────────────────


@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest,
    svc: AccountService = Depends(_accounts),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Create a password account and log it in."""
    try:
        account = await svc.create_account(
            username=body.username,
            password=body.password,
            security_question=body.security_question,
            security_answer=body.security_answer,
        )
    except DuplicateUsernameError:
        raise HTTPException(status_code=409, detail="Username already exists")

    return AuthResponse(
        token=issuer.issue(account.id, account.username),
        user=AccountSummary.model_validate(account),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    svc: AccountService = Depends(_accounts),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Login with username and password → session token."""
    try:
        account = await svc.verify_credential(body.username, body.password)
    except InvalidCredentialError:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return AuthResponse(
        token=issuer.issue(account.id, account.username),
        user=AccountSummary.model_validate(account),
    )


# ─── Recovery ────────────────────────────────────────────


@router.post("/forgot-password", response_model=SecurityQuestionResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    svc: AccountService = Depends(_accounts),
):
    """Return the security question for a username."""
    try:
        question = await svc.get_recovery_prompt(body.username)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return SecurityQuestionResponse(security_question=question)


@router.post("/reset-password", response_model=ResetPasswordResponse)
async def reset_password(
    body: ResetPasswordRequest,
    svc: AccountService = Depends(_accounts),
):
    """Verify the security answer and set a new password."""
    try:
        await svc.complete_recovery(
            body.username, body.security_answer, body.new_password
        )
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except WrongAnswerError:
        raise HTTPException(status_code=401, detail="Incorrect security answer")
    return ResetPasswordResponse()


# ─── Current identity ────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_account),
    svc: AccountService = Depends(_accounts),
):
    """Get the authenticated account's info."""
    account = await svc.get_account(identity.account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return account
