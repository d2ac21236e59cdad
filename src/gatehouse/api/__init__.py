"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Guards are declared per route (Depends(require_admin_role) and
friends) rather than per router, because /auth and /users each mix
open, user-level and admin-level endpoints on the same path.
"""

from fastapi import APIRouter

from gatehouse.api.accounts import router as accounts_router
from gatehouse.api.auth import router as auth_router
from gatehouse.api.health import router as health_router
from gatehouse.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(accounts_router, tags=["accounts"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
