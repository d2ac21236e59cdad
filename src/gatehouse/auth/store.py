"""Token store — fingerprints of every issued session token.

Learn: The tokens table is an allow-list. A presented token is trusted
only while its fingerprint is stored here; logout deletes the row, so a
token whose signature still verifies is nonetheless dead.

Recording is fire-and-forget. The login/register response does not wait
for the insert, which means a freshly issued token can briefly be
presented before its row is durable and would be rejected as unknown.
That window is accepted in exchange for not blocking the response.
"""

import uuid

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatehouse.background import Schedule, spawn
from gatehouse.db.models import Token

logger = structlog.get_logger()


class TokenStore:
    """Persists, looks up and revokes token fingerprints."""

    def __init__(
        self,
        db: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
        schedule: Schedule = spawn,
    ):
        self.db = db
        self.session_factory = session_factory
        self.schedule = schedule

    def record(self, value: str, user_id: uuid.UUID) -> None:
        """Dispatch the insert in the background and return immediately."""
        self.schedule(self.write, value, user_id)

    async def write(self, value: str, user_id: uuid.UUID) -> None:
        """Insert one fingerprint in its own session. Never raises."""
        try:
            async with self.session_factory() as session:
                session.add(Token(value=value, user_id=user_id))
                await session.commit()
        except Exception:
            logger.exception("token.record_failed", user_id=str(user_id))
            return
        logger.debug("token.recorded", user_id=str(user_id))

    async def exists(self, value: str) -> Token | None:
        result = await self.db.execute(select(Token).where(Token.value == value))
        return result.scalars().first()

    async def revoke(self, value: str) -> None:
        """Delete every row with this fingerprint. A no-op when absent."""
        await self.db.execute(delete(Token).where(Token.value == value))
        await self.db.commit()

    async def revoke_all(self, user_id: uuid.UUID) -> None:
        """Delete every session belonging to a user."""
        await self.db.execute(delete(Token).where(Token.user_id == user_id))
        await self.db.commit()
