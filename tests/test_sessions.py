"""Session lifecycle tests — start, end, non-fatal signing failure."""

import pytest
from sqlalchemy import func, select

from gatehouse.auth.jwt import TokenCodec, fingerprint
from gatehouse.auth.sessions import SessionManager
from gatehouse.background import drain
from gatehouse.db.models import Token


@pytest.mark.asyncio
async def test_start_issues_and_records(sessions, resolver, member):
    sessions.start(member)
    assert member.token
    await drain()

    user = await resolver.resolve(member.token)
    assert user.id == member.id


@pytest.mark.asyncio
async def test_end_revokes(sessions, store, member):
    token = sessions.start(member).token
    await drain()

    await sessions.end(token)
    assert await store.exists(fingerprint(token)) is None


@pytest.mark.asyncio
async def test_end_is_silent_for_bad_tokens(sessions):
    await sessions.end(None)
    await sessions.end("")
    await sessions.end("garbage")
    await sessions.end("a.b.c")


@pytest.mark.asyncio
async def test_signing_failure_returns_user_without_token(store, resolver, member, db_session):
    broken = SessionManager(TokenCodec(secret=""), store, resolver)

    user = broken.start(member)
    await drain()

    assert user is member
    assert user.token is None
    count = (await db_session.execute(select(func.count()).select_from(Token))).scalar_one()
    assert count == 0
