"""
User Schemas

Request/response models for user data.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserRecord(BaseModel):
    """
    The authenticated principal as the access pipeline sees it.

    Built from a verified token or a users row; never from raw input.
    """
    id: str
    email: str

    class Config:
        from_attributes = True
        frozen = True


class UserCreate(BaseModel):
    """Sign-up request body."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    full_name: Optional[str] = Field(None, max_length=255)


class UserResponse(BaseModel):
    """User response schema (excludes sensitive data)."""
    id: str
    email: EmailStr
    full_name: Optional[str]
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime]

    class Config:
        from_attributes = True
