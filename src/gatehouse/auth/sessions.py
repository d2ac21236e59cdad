"""Session lifecycle — start on login/register, end on logout.

Learn: Starting a session signs a token and records its fingerprint in
the background. Signing failure is not fatal to the surrounding login
or registration: the user is returned without a token and the failure
is logged. Ending a session never raises either — logout reports
success whatever happens, so it cannot be used to probe which tokens
are live.
"""

import structlog

from gatehouse.auth.jwt import SigningError, TokenCodec, fingerprint
from gatehouse.auth.resolver import IdentityRejected, IdentityResolver
from gatehouse.auth.store import TokenStore
from gatehouse.db.models import User

logger = structlog.get_logger()


class SessionManager:
    def __init__(self, codec: TokenCodec, store: TokenStore, resolver: IdentityResolver):
        self.codec = codec
        self.store = store
        self.resolver = resolver

    def start(self, user: User) -> User:
        """Issue a token for user and set user.token (None if signing failed)."""
        try:
            token = self.codec.issue(str(user.id), str(user.account_id))
        except SigningError as e:
            logger.error("auth.signing_failed", user_id=str(user.id), error=str(e))
            user.token = None
            return user

        self.store.record(fingerprint(token), user.id)
        user.token = token
        return user

    async def end(self, token: str | None) -> None:
        """Revoke token if it currently resolves. Silent otherwise."""
        if not token:
            return
        try:
            user = await self.resolver.resolve(token)
        except IdentityRejected as e:
            logger.info("auth.logout_ignored", reason=e.reason)
            return

        await self.store.revoke(fingerprint(token))
        logger.info("auth.logout", user_id=str(user.id))
