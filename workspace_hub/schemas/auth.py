"""
Authentication Schemas

Request/response models for authentication endpoints and the auth
event bus.
"""
import enum
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"
    session_id: str


class SessionPrincipal(BaseModel):
    """Decoded, verified session token."""
    user_id: str
    email: Optional[str] = None
    session_id: Optional[str] = None

    class Config:
        frozen = True


class SignInRequest(BaseModel):
    """Sign-in request body."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthEventType(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class AuthEvent(BaseModel):
    """
    Session change notification broadcast by the auth endpoints.

    session_id names the token that was issued or ended. client_id, when
    the caller sent one, is the stable key of the browser or device and
    survives from one sign-in to the next.
    """
    type: AuthEventType
    session_id: str
    client_id: Optional[str] = None
    user_id: str
    email: Optional[str] = None

    class Config:
        frozen = True
