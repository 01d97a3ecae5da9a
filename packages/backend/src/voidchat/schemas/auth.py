"""Pydantic schemas for signup, login, recovery and identity.

Learn: The web client speaks camelCase (securityQuestion, newPassword).
Request fields accept either spelling via AliasChoices; response fields
use serialization_alias, which FastAPI applies when rendering.
"""

from pydantic import AliasChoices, BaseModel, Field


# ─── Requests ────────────────────────────────────────────

class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    security_question: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("securityQuestion", "security_question"),
    )
    security_answer: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("securityAnswer", "security_answer"),
    )


class LoginRequest(BaseModel):
    username: str
    password: str


class ForgotPasswordRequest(BaseModel):
    username: str


class ResetPasswordRequest(BaseModel):
    username: str
    security_answer: str = Field(
        ..., validation_alias=AliasChoices("securityAnswer", "security_answer")
    )
    new_password: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("newPassword", "new_password"),
    )


# ─── Responses ───────────────────────────────────────────

class AccountSummary(BaseModel):
    id: int
    username: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Token + account summary, returned by signup, login and Google sign-in."""
    token: str
    user: AccountSummary


class SecurityQuestionResponse(BaseModel):
    security_question: str = Field(serialization_alias="securityQuestion")


class ResetPasswordResponse(BaseModel):
    success: bool = True
    message: str = "Password reset successfully"


class AuthUrlResponse(BaseModel):
    url: str


class MeResponse(BaseModel):
    id: int
    username: str
    identity_provider: str = Field(serialization_alias="identityProvider")

    model_config = {"from_attributes": True}
