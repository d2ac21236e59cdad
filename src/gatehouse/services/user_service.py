"""User service — registration, login, password and metadata changes, admin CRUD.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.

Tenant rules:
- usernames are unique per account, not globally
- self-registration always creates a standard user (role "")
- login failures never reveal whether the username exists
- the admin surface spans every account unless admin_scope="account"

bcrypt is CPU-bound, so hashing runs in a worker thread to keep the
event loop serving other requests.
"""

import asyncio
import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatehouse.auth.password import PasswordHasher
from gatehouse.background import Schedule, spawn
from gatehouse.db.models import Token, User
from gatehouse.errors import (
    ConflictError,
    CredentialError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = structlog.get_logger()

_UNSET = object()


class UserService:
    """Business logic for users within accounts."""

    def __init__(
        self,
        db: AsyncSession,
        hasher: PasswordHasher,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        schedule: Schedule = spawn,
        admin_scope: str = "global",
    ):
        self.db = db
        self.hasher = hasher
        self.session_factory = session_factory
        self.schedule = schedule
        self.admin_scope = admin_scope

    async def commit(self, action: str) -> None:
        """Commit, mapping store failures onto the service error taxonomy."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("username in use") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user.commit_failed", action=action, error=str(e))
            raise PersistenceError(f"could not {action}") from e

    # ─── Lookups ────────────────────────────────────────

    async def find(self, account_id: uuid.UUID, username: str) -> User | None:
        result = await self.db.execute(
            select(User).where(
                User.account_id == account_id, User.username == username
            )
        )
        return result.scalars().first()

    # ─── Registration / login ───────────────────────────

    async def register(
        self,
        account_id: uuid.UUID,
        username: str,
        password: str,
        role: str = "",
        metadata: dict | None = None,
    ) -> User:
        """Create a user in an account. Flushes; the caller commits.

        Learn: The SELECT is a fast path for a friendly error. Two
        concurrent registrations can both pass it, so the composite
        unique constraint on (account_id, username) is what actually
        decides — its IntegrityError becomes the same ConflictError.
        """
        if not username or not password:
            raise ValidationError("no username or password")

        if await self.find(account_id, username):
            raise ConflictError("username in use")

        user = User(
            id=uuid.uuid4(),
            account_id=account_id,
            username=username,
            password_hash=await asyncio.to_thread(self.hasher.hash, password),
            role=role,
            meta=metadata,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError("username in use") from e

        logger.info(
            "user.registered",
            user_id=str(user.id),
            account_id=str(account_id),
            role=role,
        )
        return user

    async def login(self, account_id: uuid.UUID, username: str, password: str) -> User:
        user = await self.find(account_id, username) if username else None

        if user is None:
            # Same bcrypt cost as a real check, then the same error.
            await asyncio.to_thread(self.hasher.verify, password, self.hasher.dummy_hash)
            logger.info("auth.login_failed", account_id=str(account_id))
            raise CredentialError()

        if not await asyncio.to_thread(self.hasher.verify, password, user.password_hash):
            logger.info("auth.login_failed", account_id=str(account_id))
            raise CredentialError()

        logger.info("auth.login", user_id=str(user.id), account_id=str(account_id))
        return user

    # ─── Self-service ───────────────────────────────────

    async def change_password(self, user: User, old_password: str, new_password: str) -> User:
        if not new_password:
            raise ValidationError("no new password")
        if not await asyncio.to_thread(self.hasher.verify, old_password, user.password_hash):
            raise CredentialError()

        user.password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
        await self.commit("change password")
        logger.info("user.password_changed", user_id=str(user.id))
        return user

    async def update_metadata(self, user: User, metadata: dict | None) -> User:
        """Overwrite metadata and nothing else."""
        user.meta = metadata
        await self.commit("update metadata")
        return user

    # ─── Admin surface ──────────────────────────────────

    def _scoped(self, query, admin: User):
        if self.admin_scope == "account":
            query = query.where(User.account_id == admin.account_id)
        return query

    async def list_users(self, admin: User) -> list[User]:
        result = await self.db.execute(
            self._scoped(select(User), admin).order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def get_user(self, admin: User, user_id: uuid.UUID) -> User | None:
        result = await self.db.execute(
            self._scoped(select(User).where(User.id == user_id), admin)
        )
        return result.scalars().first()

    async def create_user(
        self,
        admin: User,
        username: str,
        password: str,
        role: str = "",
        metadata: dict | None = None,
        account_id: uuid.UUID | None = None,
    ) -> User:
        """Admin-created user. May carry any role, unlike self-registration."""
        if self.admin_scope == "account" or account_id is None:
            account_id = admin.account_id

        user = await self.register(
            account_id, username, password, role=role, metadata=metadata
        )
        await self.commit("create user")
        return user

    async def update_user(
        self,
        admin: User,
        user_id: uuid.UUID,
        username: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[str] = None,
        metadata=_UNSET,
    ) -> User:
        user = await self.get_user(admin, user_id)
        if not user:
            raise NotFoundError("user not found")

        if username and username != user.username:
            if await self.find(user.account_id, username):
                raise ConflictError("username in use")
            user.username = username
        if password:
            user.password_hash = await asyncio.to_thread(self.hasher.hash, password)
        if role is not None:
            user.role = role
        if metadata is not _UNSET:
            user.meta = metadata

        await self.commit("update user")

        logger.info("user.updated", user_id=str(user.id), admin_id=str(admin.id))
        return user

    def delete_user(self, admin: User, user_id: uuid.UUID) -> None:
        """Dispatch deletion in the background. The caller always reports success."""
        scope = admin.account_id if self.admin_scope == "account" else None
        self.schedule(self._delete, user_id, scope)

    async def _delete(self, user_id: uuid.UUID, account_id: uuid.UUID | None) -> None:
        """Remove a user and their sessions in one transaction. Never raises."""
        try:
            async with self.session_factory() as session:
                query = select(User.id).where(User.id == user_id)
                if account_id is not None:
                    query = query.where(User.account_id == account_id)
                if (await session.execute(query)).first() is None:
                    return
                await session.execute(delete(Token).where(Token.user_id == user_id))
                await session.execute(delete(User).where(User.id == user_id))
                await session.commit()
        except Exception:
            logger.exception("user.delete_failed", user_id=str(user_id))
            return
        logger.info("user.deleted", user_id=str(user_id))
