"""Auth request/response schemas."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserRole
from app.schemas.common import CamelModel


# ── Register ───────────────────────────────────────
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    # Admin accounts come from the seed command, never from self-registration
    role: Literal["Customer", "ServiceProvider"] = "Customer"


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


# ── Responses ──────────────────────────────────────
class UserPublic(CamelModel):
    id: UUID
    name: str
    email: str
    role: UserRole


class AuthResponse(CamelModel):
    user: UserPublic
    token: str
    token_type: str = "bearer"


# ── Current User ───────────────────────────────────
class CurrentUser(BaseModel):
    id: UUID
    role: str
