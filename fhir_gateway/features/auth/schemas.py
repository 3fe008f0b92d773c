from enum import Enum
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime


class Role(str, Enum):
    """Roles a user account can hold."""

    CLINICIAN = "CLINICIAN"
    DATA_SCIENTIST = "DATA_SCIENTIST"


# Request Schemas
class RegisterRequest(BaseModel):
    """Register request schema."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    role: Role = Role.CLINICIAN


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str


# Internal models
class StoredUser(BaseModel):
    """User account as returned by the user repository, hash included."""

    id: str
    email: EmailStr
    name: str
    role: Role
    password_hash: str
    created_at: datetime
    updated_at: datetime


class AccessClaims(BaseModel):
    """Decoded payload of an access or refresh token."""

    sub: str
    email: EmailStr
    role: Role
    type: str
    exp: int


class TokenPair(BaseModel):
    """Access and refresh tokens issued together."""

    access_token: str
    refresh_token: str


# Response Schemas
class UserResponse(BaseModel):
    """User response schema. Never carries the password hash."""

    id: str
    email: EmailStr
    name: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_stored(cls, user: StoredUser) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
