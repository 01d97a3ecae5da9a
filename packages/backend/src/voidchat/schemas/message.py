"""Pydantic schemas for the message ledger and the chat gateway."""

from datetime import datetime

from pydantic import BaseModel, Field

from voidchat.completion import Personality


class MessageCreate(BaseModel):
    role: str = Field(..., pattern=r"^(user|assistant)$")
    content: str  # emptiness is the caller's business


class MessageRead(BaseModel):
    id: int
    role: str
    content: str
    created_at: datetime = Field(serialization_alias="createdAt")

    model_config = {"from_attributes": True}


class AppendResponse(BaseModel):
    success: bool = True


class ChatRequest(BaseModel):
    content: str = Field(..., min_length=1)
    personality: Personality = Personality.HELPFUL
