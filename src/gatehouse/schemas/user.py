"""Pydantic schemas for users and authentication.

Learn: Separate input schemas (requests) from output schemas (responses).
The password hash never appears in any output schema. The bearer token
only appears in SessionUser, returned by login, register and GET /auth.

Credential fields default to "" so that a missing username or password
reaches the service and gets its 400 "no username or password", the
same answer as an explicitly empty one.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# ─── Requests ───────────────────────────────────────────

class Credentials(BaseModel):
    username: str = ""
    password: str = ""


class PasswordChange(BaseModel):
    password: str = ""
    new_password: str = Field(default="", alias="newPassword")

    model_config = {"populate_by_name": True}


class MetadataUpdate(BaseModel):
    metadata: Optional[dict[str, Any]] = None


class UserCreate(BaseModel):
    """Admin-created user. Unlike self-registration, role is honoured."""
    username: str = ""
    password: str = ""
    role: str = ""
    metadata: Optional[dict[str, Any]] = None
    account_id: Optional[uuid.UUID] = None


class UserUpdate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


# ─── Responses ──────────────────────────────────────────

class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    role: str
    metadata: Optional[dict[str, Any]] = Field(default=None, validation_alias="meta")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SessionUser(UserRead):
    """The caller's own record, with their bearer token."""
    token: Optional[str] = None
