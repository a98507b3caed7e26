import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, validator


class UserRole(str, Enum):
    """User roles enumeration"""
    READER = "reader"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def is_privileged(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.SUPER_ADMIN)


class UserStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


def _check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Za-z]", value):
        raise ValueError("Password must contain at least one letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one digit")
    return value


class UserCreate(BaseModel):
    """User registration payload"""
    email: EmailStr = Field(..., description="User email address")
    full_name: str = Field(..., min_length=1, max_length=255, description="Full name")
    password: str = Field(..., min_length=8, max_length=72, description="Password")

    @validator("password")
    def validate_password(cls, v):
        return _check_password_strength(v)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "reader@example.com",
                "full_name": "Alisher Navoiy",
                "password": "Kitob2026",
            }
        }


class UserUpdate(BaseModel):
    """Profile update (partial)"""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255, description="Full name")


class PasswordChange(BaseModel):
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=8, max_length=72, description="New password")

    @validator("new_password")
    def validate_new_password(cls, v):
        return _check_password_strength(v)


class UserResponse(BaseModel):
    """Public user representation"""
    id: int
    email: EmailStr
    full_name: str
    role: UserRole
    status: UserStatus
    email_verified: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
