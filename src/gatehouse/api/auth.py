"""Auth API — current user, register, login, logout, password change.

Learn: Routes for the session lifecycle, all on one path:
- GET    /auth          → current user (or null — never a 401)
- POST   /auth          → register within the Account-Key's account
- PUT    /auth          → login within the Account-Key's account
- DELETE /auth          → logout (always {"success": true})
- PUT    /auth/password → change own password

Register and login return the user with a fresh token. The token's
fingerprint is written by a background task after the response is
sent, so the token is usable a moment later, not necessarily at once.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends

from gatehouse.auth.dependencies import (
    get_bearer_token,
    get_current_user_optional,
    get_sessions,
    get_user_service,
    require_account_key,
    require_authenticated_user,
)
from gatehouse.auth.sessions import SessionManager
from gatehouse.db.models import Account, User
from gatehouse.schemas.user import Credentials, PasswordChange, SessionUser, UserRead
from gatehouse.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Current user ───────────────────────────────────────


@router.get("", response_model=Optional[SessionUser])
async def get_current_user(user: Optional[User] = Depends(get_current_user_optional)):
    """The caller's own record with their token, or null."""
    return user


# ─── Register ───────────────────────────────────────────


@router.post("", response_model=SessionUser)
async def register(
    body: Credentials,
    account: Account = Depends(require_account_key),
    svc: UserService = Depends(get_user_service),
    sessions: SessionManager = Depends(get_sessions),
):
    """Create a standard user in the key's account and log them in.

    Learn: role is not part of the request body at all — self-registration
    can never produce an admin or owner.
    """
    user = await svc.register(account.id, body.username, body.password, role="")
    await svc.commit("register user")
    return sessions.start(user)


# ─── Login ──────────────────────────────────────────────


@router.put("", response_model=SessionUser)
async def login(
    body: Credentials,
    account: Account = Depends(require_account_key),
    svc: UserService = Depends(get_user_service),
    sessions: SessionManager = Depends(get_sessions),
):
    user = await svc.login(account.id, body.username, body.password)
    return sessions.start(user)


# ─── Logout ─────────────────────────────────────────────


@router.delete("")
async def logout(
    token: Optional[str] = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_sessions),
):
    """Revoke the presented token. Always succeeds so as not to enumerate."""
    await sessions.end(token)
    return {"success": True}


# ─── Password ───────────────────────────────────────────


@router.put("/password", response_model=UserRead)
async def change_password(
    body: PasswordChange,
    user: User = Depends(require_authenticated_user),
    svc: UserService = Depends(get_user_service),
):
    return await svc.change_password(user, body.password, body.new_password)
