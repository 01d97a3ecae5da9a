"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Alembic migrations under db/migrations mirror these tables.

Two tables:
- accounts: one row per identity, username UNIQUE at the storage layer.
  Password and Google accounts share the table; identity_provider tags
  which variant a row is (no magic password sentinel).
- messages: append-only transcript, owned by an account.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# identity_provider values
PROVIDER_PASSWORD = "password"
PROVIDER_GOOGLE = "google"

# message roles
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
MESSAGE_ROLES = (ROLE_USER, ROLE_ASSISTANT)


class Account(Base):
    """A user identity, keyed by a unique username.

    Learn: For Google accounts the username is the provider-verified
    email, password_hash is NULL and security_answer_hash is NULL, so
    neither password login nor security-question recovery can ever
    succeed for them. Rows are created once and only mutated by a
    password reset.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("username", name="uq_accounts_username"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    identity_provider: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PROVIDER_PASSWORD
    )  # password, google
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )  # NULL for federated accounts
    security_question: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    security_answer_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    messages: Mapped[list["Message"]] = relationship(
        back_populates="account", passive_deletes=True
    )

    @property
    def is_federated(self) -> bool:
        return self.identity_provider != PROVIDER_PASSWORD


class Message(Base):
    """One turn of an account's transcript.

    Learn: Messages are immutable and append-only. Read order is
    (created_at, id): the timestamp comes from the database clock and
    the autoincrement id breaks ties between rows written in the same
    clock tick.
    """

    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_account_order", "account_id", "created_at", "id"),
        CheckConstraint("role IN ('user', 'assistant')", name="ck_messages_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)  # user, assistant
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    account: Mapped["Account"] = relationship(back_populates="messages")
