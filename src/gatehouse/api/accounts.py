"""Account API — tenant onboarding and key management.

Learn:
- POST /accounts       → account + first key + logged-in owner (open)
- GET  /accounts/keys  → keys of the caller's own account (admin)
- POST /accounts/keys  → issue another key for the caller's account (admin)

The key id in the response is the secret clients send as Account-Key.
"""

from fastapi import APIRouter, Depends

from gatehouse.auth.dependencies import get_account_service, require_admin_role
from gatehouse.db.models import User
from gatehouse.schemas.account import AccountCreate, AccountCreated, KeyRead
from gatehouse.services.account_service import AccountService

router = APIRouter(prefix="/accounts")


@router.post("", response_model=AccountCreated, status_code=201)
async def create_account(
    body: AccountCreate,
    svc: AccountService = Depends(get_account_service),
):
    account, key, owner = await svc.create_account(
        name=body.name, username=body.username, password=body.password
    )
    return {"account": account, "key": key, "user": owner}


@router.get("/keys", response_model=list[KeyRead])
async def list_keys(
    admin: User = Depends(require_admin_role),
    svc: AccountService = Depends(get_account_service),
):
    return await svc.list_keys(admin.account_id)


@router.post("/keys", response_model=KeyRead, status_code=201)
async def create_key(
    admin: User = Depends(require_admin_role),
    svc: AccountService = Depends(get_account_service),
):
    return await svc.create_key(admin.account_id)
