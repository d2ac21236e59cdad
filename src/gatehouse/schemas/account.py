"""Pydantic schemas for accounts and keys."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from gatehouse.schemas.user import SessionUser


class AccountCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    username: str = ""
    password: str = ""


class AccountRead(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class KeyRead(BaseModel):
    """The id is the key itself — send it as the Account-Key header."""
    id: uuid.UUID
    account_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountCreated(BaseModel):
    account: AccountRead
    key: KeyRead
    user: SessionUser
