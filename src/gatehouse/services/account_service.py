"""Account service — tenant onboarding and account keys.

Learn: Creating an account provisions everything a tenant needs to be
usable immediately: the account, one key, and an "owner" user who is
logged in straight away.

The three inserts share one transaction. If the owner cannot be created
the account and key are rolled back too, so a half-built tenant never
exists. Signing the owner's first token happens after the commit and is
allowed to fail — the caller gets the owner without a token.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.auth.sessions import SessionManager
from gatehouse.db.models import Account, Key, User
from gatehouse.errors import (
    AuthorizationError,
    GatehouseError,
    PersistenceError,
    ValidationError,
)
from gatehouse.services.user_service import UserService

logger = structlog.get_logger()

OWNER_ROLE = "owner"


class AccountService:
    """Business logic for accounts and their keys."""

    def __init__(
        self,
        db: AsyncSession,
        users: UserService | None = None,
        sessions: SessionManager | None = None,
    ):
        self.db = db
        self.users = users
        self.sessions = sessions

    # ─── Onboarding ─────────────────────────────────────

    async def create_account(
        self, name: str | None, username: str, password: str
    ) -> tuple[Account, Key, User]:
        if not username or not password:
            raise ValidationError("no username or password")

        try:
            account = Account(id=uuid.uuid4(), name=name)
            self.db.add(account)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("account.create_failed", step="account", error=str(e))
            raise PersistenceError("could not create account") from e

        try:
            key = Key(id=uuid.uuid4(), account_id=account.id)
            self.db.add(key)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("account.create_failed", step="key", error=str(e))
            raise PersistenceError("could not create account key") from e

        try:
            owner = await self.users.register(
                account.id, username, password, role=OWNER_ROLE
            )
            await self.db.commit()
        except GatehouseError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("account.create_failed", step="owner", error=str(e))
            raise PersistenceError("could not create owner") from e

        logger.info(
            "account.created",
            account_id=str(account.id),
            owner_id=str(owner.id),
        )

        self.sessions.start(owner)
        return account, key, owner

    # ─── Keys ───────────────────────────────────────────

    async def create_key(self, account_id: uuid.UUID) -> Key:
        key = Key(id=uuid.uuid4(), account_id=account_id)
        self.db.add(key)
        await self.db.commit()
        logger.info("account.key_created", account_id=str(account_id))
        return key

    async def list_keys(self, account_id: uuid.UUID) -> list[Key]:
        result = await self.db.execute(
            select(Key).where(Key.account_id == account_id).order_by(Key.created_at)
        )
        return list(result.scalars().all())

    async def validate_key(self, raw_key: str | None) -> Account:
        """Resolve an Account-Key header value to its account."""
        if not raw_key:
            raise AuthorizationError("no account key provided")
        try:
            key_id = uuid.UUID(raw_key)
        except ValueError:
            raise AuthorizationError("invalid account key")

        result = await self.db.execute(
            select(Account).join(Key, Key.account_id == Account.id).where(Key.id == key_id)
        )
        account = result.scalars().first()
        if not account:
            raise AuthorizationError("invalid account key")
        return account

    async def validate_account_id(self, raw_id: str | None) -> Account:
        """Resolve an Account-Id header value (the older scoping scheme)."""
        if not raw_id:
            raise AuthorizationError("no account id provided")
        try:
            account_id = uuid.UUID(raw_id)
        except ValueError:
            raise AuthorizationError("invalid account id")

        account = await self.db.get(Account, account_id)
        if not account:
            raise AuthorizationError("invalid account id")
        return account
