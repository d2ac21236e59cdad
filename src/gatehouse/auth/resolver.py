"""Identity resolver — presented token → user within a tenant.

Learn: Resolution walks a fixed sequence and stops at the first failure:

    fingerprint stored?  → no  → rejected (unknown)
    signature + expiry?  → bad → rejected (invalid)
    user with id=uid AND account_id=aid? → no → rejected (unknown)
    → resolved

The storage check comes first on purpose: it is what makes logout
effective, since a revoked token still has a perfectly good signature.
The final lookup matches both claims, so a token minted for one account
can never resolve to a user of another.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatehouse.auth.jwt import MalformedToken, TokenCodec, TokenError, fingerprint
from gatehouse.auth.store import TokenStore
from gatehouse.db.models import User
from gatehouse.errors import AuthorizationError

logger = structlog.get_logger()

UNKNOWN = "unknown"
INVALID = "invalid"


class IdentityRejected(AuthorizationError):
    """Token did not resolve. reason is "unknown" or "invalid"."""

    def __init__(self, reason: str):
        super().__init__("unauthorized")
        self.reason = reason


class IdentityResolver:
    def __init__(self, db: AsyncSession, codec: TokenCodec, store: TokenStore):
        self.db = db
        self.codec = codec
        self.store = store

    async def resolve(self, token: str) -> User:
        """Return the user bound to token, or raise IdentityRejected."""
        try:
            value = fingerprint(token)
        except MalformedToken:
            raise IdentityRejected(UNKNOWN)

        if await self.store.exists(value) is None:
            raise IdentityRejected(UNKNOWN)

        try:
            claims = self.codec.verify(token)
        except TokenError as e:
            logger.info("auth.token_rejected", error=str(e))
            raise IdentityRejected(INVALID) from e

        try:
            user_id = uuid.UUID(claims.user_id)
            account_id = uuid.UUID(claims.account_id)
        except ValueError:
            raise IdentityRejected(UNKNOWN)

        result = await self.db.execute(
            select(User).where(User.id == user_id, User.account_id == account_id)
        )
        user = result.scalars().first()
        if not user:
            raise IdentityRejected(UNKNOWN)

        user.token = token
        return user
