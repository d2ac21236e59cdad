"""User API — own metadata, plus the admin user surface.

Learn: PATCH /users is the one write a standard user may make, and only
to their own resolved identity — it touches metadata and nothing else.
Everything else requires an admin or owner role.

GET /users/{id} answers null for a missing user and DELETE always
answers {"success": true}; neither reveals which ids exist.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from gatehouse.auth.dependencies import (
    get_user_service,
    require_admin_role,
    require_authenticated_user,
)
from gatehouse.db.models import User
from gatehouse.schemas.user import (
    MetadataUpdate,
    UserCreate,
    UserRead,
    UserUpdate,
)
from gatehouse.services.user_service import UserService

router = APIRouter(prefix="/users")


# ─── Self-service ───────────────────────────────────────


@router.patch("", response_model=UserRead)
async def update_metadata(
    body: MetadataUpdate,
    user: User = Depends(require_authenticated_user),
    svc: UserService = Depends(get_user_service),
):
    return await svc.update_metadata(user, body.metadata)


# ─── Admin ──────────────────────────────────────────────


@router.get("", response_model=list[UserRead])
async def list_users(
    admin: User = Depends(require_admin_role),
    svc: UserService = Depends(get_user_service),
):
    return await svc.list_users(admin)


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    admin: User = Depends(require_admin_role),
    svc: UserService = Depends(get_user_service),
):
    return await svc.create_user(
        admin,
        body.username,
        body.password,
        role=body.role,
        metadata=body.metadata,
        account_id=body.account_id,
    )


@router.get("/{user_id}", response_model=Optional[UserRead])
async def get_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin_role),
    svc: UserService = Depends(get_user_service),
):
    return await svc.get_user(admin, user_id)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    admin: User = Depends(require_admin_role),
    svc: UserService = Depends(get_user_service),
):
    changes = body.model_dump(exclude_unset=True)
    return await svc.update_user(admin, user_id, **changes)


@router.delete("/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin_role),
    svc: UserService = Depends(get_user_service),
):
    svc.delete_user(admin, user_id)
    return {"success": True}
