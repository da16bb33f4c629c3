"""
Security Module

Password hashing, JWT session tokens and session token extraction.
Uses passlib (bcrypt) and python-jose.

Token payload:
- sub: user id
- email: user email at sign-in time
- sid: session id, used to scope auth events to one client session
- exp / iat
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import uuid
from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.requests import Request
from workspace_hub.config import get_settings
from workspace_hub.schemas.auth import SessionPrincipal

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash (constant-time)."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow. Don't call this in hot paths.
    """
    return pwd_context.hash(password)


def new_session_id() -> str:
    return uuid.uuid4().hex


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow()
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def principal_from_token(token: Optional[str]) -> Optional[SessionPrincipal]:
    """Turn a raw token into a verified principal, or None."""
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None

    return SessionPrincipal(
        user_id=payload["sub"],
        email=payload.get("email"),
        session_id=payload.get("sid"),
    )


def extract_session_token(request: Request) -> Optional[str]:
    """
    Find the session token on a request.

    Priority:
    1. Authorization: Bearer header (API clients)
    2. Session cookie (browsers following redirects)
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None

    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_session_principal(request: Request) -> Optional[SessionPrincipal]:
    """Verified session principal for a request, None if absent or invalid."""
    return principal_from_token(extract_session_token(request))
