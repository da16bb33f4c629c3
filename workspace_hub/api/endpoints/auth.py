"""
Authentication Endpoints

Sign-up, sign-in and sign-out. Accounts are global; which tenants a user
may enter is decided by memberships, not here.

Everything under /auth is a public path, so the tenant access middleware
lets these through without a session.
"""
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from sqlalchemy.orm import Session

from workspace_hub.api.deps import get_auth_event_bus, get_principal
from workspace_hub.config import get_settings
from workspace_hub.core.exceptions import AuthenticationError
from workspace_hub.core.security import (
    create_access_token,
    get_password_hash,
    new_session_id,
    verify_password,
)
from workspace_hub.database import get_db
from workspace_hub.models.user import User
from workspace_hub.schemas.auth import AuthEvent, AuthEventType, SessionPrincipal, SignInRequest, Token
from workspace_hub.schemas.user import UserCreate, UserResponse
from workspace_hub.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["authentication"])


def _cookie_domain() -> Optional[str]:
    # Share the session across tenant subdomains in production
    if settings.ENVIRONMENT == "production":
        return f".{settings.ROOT_DOMAIN}"
    return None


@router.get("/signin")
async def signin_page():
    """Where unauthenticated requests are redirected."""
    return {
        "page": "signin",
        "message": "Sign in to continue",
        "action": "/auth/signin",
    }


@router.get("/unauthorized", status_code=status.HTTP_403_FORBIDDEN)
async def unauthorized_page():
    """Where signed-in non-members are redirected."""
    return {
        "page": "unauthorized",
        "message": "You do not have access to this workspace",
    }


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    registration: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Create an account.

    An invited email already has a placeholder user without a password;
    signing up with that email completes it instead of failing.
    """
    email = registration.email.lower()
    user = db.query(User).filter(User.email == email).first()

    if user and user.has_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An account with this email already exists"
        )

    if user is None:
        user = User(email=email)
        db.add(user)

    user.hashed_password = get_password_hash(registration.password)
    user.full_name = registration.full_name
    db.commit()
    db.refresh(user)

    logger.info(f"User signed up: {user.id}")
    return user


@router.post("/signin", response_model=Token)
async def signin(
    credentials: SignInRequest,
    response: Response,
    db: Session = Depends(get_db),
    events=Depends(get_auth_event_bus),
    client_id: Optional[str] = Header(None, alias="X-Client-Id")
):
    """
    Verify credentials, issue a session token and announce the sign-in.

    The token is returned in the body and also set as a cookie so
    browser navigations through the tenant middleware carry it.
    An X-Client-Id header, if present, is echoed on the event so the
    client's own context providers recognise it.
    """
    email = credentials.email.lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not user.has_password or not verify_password(credentials.password, user.hashed_password):
        # Same error for every case to prevent user enumeration
        log_security_event("failed_signin", {"email": email}, logger)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event("failed_signin", {"reason": "user_inactive", "user_id": user.id}, logger)
        raise AuthenticationError("User account is inactive")

    session_id = new_session_id()
    access_token = create_access_token(
        {"sub": user.id, "email": user.email, "sid": session_id},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    user.last_login_at = datetime.utcnow()
    db.commit()

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        domain=_cookie_domain(),
    )

    await events.publish(AuthEvent(
        type=AuthEventType.SIGNED_IN,
        session_id=session_id,
        client_id=client_id,
        user_id=user.id,
        email=user.email,
    ))

    logger.info(f"Successful sign-in: user={user.id}")
    return Token(access_token=access_token, session_id=session_id)


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def signout(
    response: Response,
    principal: SessionPrincipal = Depends(get_principal),
    events=Depends(get_auth_event_bus),
    client_id: Optional[str] = Header(None, alias="X-Client-Id")
):
    """
    End the session.

    Tokens are stateless, so sign-out clears the cookie and tells every
    open context provider of this session to drop its tenant context.
    """
    response.delete_cookie(settings.SESSION_COOKIE_NAME, domain=_cookie_domain())

    await events.publish(AuthEvent(
        type=AuthEventType.SIGNED_OUT,
        session_id=principal.session_id or "",
        client_id=client_id,
        user_id=principal.user_id,
        email=principal.email,
    ))

    logger.info(f"Signed out: user={principal.user_id}")
    return None
