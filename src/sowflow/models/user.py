"""Pydantic models for user and authentication."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from sowflow.models.enums import Role


# ── Request models ─────────────────────────────────────────────────────────────

class UserCreate(BaseModel):
    email: EmailStr
    display_name: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=8)
    role: Role = Role.USER
    is_admin: bool = False


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


# ── Response models ────────────────────────────────────────────────────────────

class UserResponse(BaseModel):
    user_id: str
    email: str
    display_name: str
    role: Role
    is_admin: bool
    is_active: bool
    last_login: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int
