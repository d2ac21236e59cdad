"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Alembic auto-generates migrations by comparing these models to the actual DB.

Key concepts:
- UUID primary keys; a Key's id doubles as its secret
- JSON metadata (JSONB on PostgreSQL) stored verbatim, never interpreted
- Tokens store the unsigned fingerprint of a JWT, never the signature
- Username uniqueness is per account, enforced by a composite constraint
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

ADMIN_ROLES = ("admin", "owner")

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class TimestampMixin:
    """created_at / updated_at, set in Python so they are known after flush."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )


class Account(TimestampMixin, Base):
    """Tenant boundary. Owns keys and users.

    Learn: Created once at onboarding and never mutated afterwards
    (apart from timestamps). Every user and key points back here.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Relationships
    keys: Mapped[list["Key"]] = relationship(back_populates="account")
    users: Mapped[list["User"]] = relationship(back_populates="account")


class Key(TimestampMixin, Base):
    """Account key — presenting its id proves membership of the account.

    Learn: The id is the secret. There is no separate hash column because
    the value is an unguessable UUID4 and lookups are by primary key.
    Keys never expire.
    """

    __tablename__ = "keys"
    __table_args__ = (
        Index("idx_keys_account", "account_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id"), nullable=False
    )

    # Relationships
    account: Mapped["Account"] = relationship(back_populates="keys")


class User(TimestampMixin, Base):
    """A principal within an account.

    Learn: role is free-form. "owner" and "admin" are privileged (see
    ADMIN_ROLES), "" is a standard user. `token` and `new_password` are
    transient attributes that never reach the database.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "username", name="uq_users_account_username"
        ),
        Index("idx_users_username", "username"),
        Index("idx_users_account", "account_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id"), nullable=False
    )
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(50), nullable=False, default="", server_default=""
    )  # "", admin, owner
    # "metadata" is reserved on declarative classes, hence the attribute name.
    meta: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONType, nullable=True
    )

    # Relationships
    account: Mapped["Account"] = relationship(back_populates="users")
    tokens: Mapped[list["Token"]] = relationship(
        back_populates="user", passive_deletes=True
    )

    # Not persisted
    token = None
    new_password = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


class Token(TimestampMixin, Base):
    """Server-side record of an issued session.

    Learn: `value` is the fingerprint — header.payload of the JWT without
    its signature. A presented token is only trusted if its fingerprint
    is here, so deleting the row is what logout means. Expired rows are
    left in place; they can no longer verify.
    """

    __tablename__ = "tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    value: Mapped[str] = mapped_column(
        String(2048), nullable=False, unique=True, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="tokens")
