"""FastAPI auth dependencies — the access control gate.

Learn: These are used as Depends() in route handlers. They are also the
composition root: the only place that reads `settings` and wires the
hasher, codec, store and resolver together. Everything below this layer
gets its configuration through constructor arguments.

Three guards:
1. require_account_key   — Account-Key header → Account (tenant scope)
2. require_authenticated_user — Bearer token → User
3. require_admin_role    — authenticated and role is admin/owner

get_current_user_optional is the "soft" variant of (2): endpoints such
as GET /auth degrade to a null response instead of rejecting.
"""

from typing import Optional

import structlog
from fastapi import BackgroundTasks, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatehouse.auth.jwt import TokenCodec
from gatehouse.auth.password import PasswordHasher
from gatehouse.auth.resolver import IdentityRejected, IdentityResolver
from gatehouse.auth.sessions import SessionManager
from gatehouse.auth.store import TokenStore
from gatehouse.config import settings
from gatehouse.db.engine import get_db, get_session_factory
from gatehouse.db.models import Account, User
from gatehouse.errors import AuthorizationError, ForbiddenError
from gatehouse.services.account_service import AccountService
from gatehouse.services.user_service import UserService

logger = structlog.get_logger()

# One hasher per process so its dummy hash is computed once.
_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)


# ─── Components ─────────────────────────────────────────


def get_hasher() -> PasswordHasher:
    return _hasher


def get_codec() -> TokenCodec:
    return TokenCodec(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        lifetime_seconds=settings.token_expire_days * 24 * 60 * 60,
    )


def get_token_store(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> TokenStore:
    return TokenStore(db, session_factory, schedule=background_tasks.add_task)


def get_resolver(
    db: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_codec),
    store: TokenStore = Depends(get_token_store),
) -> IdentityResolver:
    return IdentityResolver(db, codec, store)


def get_sessions(
    codec: TokenCodec = Depends(get_codec),
    store: TokenStore = Depends(get_token_store),
    resolver: IdentityResolver = Depends(get_resolver),
) -> SessionManager:
    return SessionManager(codec, store, resolver)


def get_user_service(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> UserService:
    return UserService(
        db,
        hasher,
        session_factory=session_factory,
        schedule=background_tasks.add_task,
        admin_scope=settings.admin_scope,
    )


def get_account_service(
    db: AsyncSession = Depends(get_db),
    users: UserService = Depends(get_user_service),
    sessions: SessionManager = Depends(get_sessions),
) -> AccountService:
    return AccountService(db, users=users, sessions=sessions)


# ─── Headers ────────────────────────────────────────────


def get_bearer_token(
    authorization: Optional[str] = Header(None),
    x_token: Optional[str] = Header(None),
) -> Optional[str]:
    """Token from `Authorization: Bearer <token>`, or the legacy X-Token header."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return x_token or None


# ─── Guards ─────────────────────────────────────────────


async def require_account_key(
    account_key: Optional[str] = Header(None),
    account_id: Optional[str] = Header(None),
    accounts: AccountService = Depends(get_account_service),
) -> Account:
    """Resolve the tenant for register/login. 401 on any failure."""
    if not account_key and account_id and settings.allow_account_id_header:
        return await accounts.validate_account_id(account_id)
    return await accounts.validate_key(account_key)


async def get_current_user_optional(
    token: Optional[str] = Depends(get_bearer_token),
    resolver: IdentityResolver = Depends(get_resolver),
) -> Optional[User]:
    """Resolve the bearer token, or None if absent or rejected."""
    if not token:
        return None
    try:
        return await resolver.resolve(token)
    except IdentityRejected as e:
        logger.info("auth.identity_rejected", reason=e.reason)
        return None


async def require_authenticated_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    if user is None:
        raise AuthorizationError("unauthorized")
    return user


async def require_admin_role(
    user: User = Depends(require_authenticated_user),
) -> User:
    if not user.is_admin:
        raise ForbiddenError("forbidden")
    return user
