"""
Session sources

Where a client-side context provider learns who is signed in.
"""
from typing import Optional, Protocol

from workspace_hub.core.security import principal_from_token
from workspace_hub.schemas.user import UserRecord


class SessionSource(Protocol):
    @property
    def session_id(self) -> Optional[str]:
        ...

    async def get_current_user(self) -> Optional[UserRecord]:
        ...


class TokenSession:
    """
    Session held as a JWT access token.

    The token is verified on every read, so an expired session simply
    reads as signed out.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token

    @property
    def session_id(self) -> Optional[str]:
        principal = principal_from_token(self._token)
        return principal.session_id if principal else None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    async def get_current_user(self) -> Optional[UserRecord]:
        principal = principal_from_token(self._token)
        if principal is None:
            return None
        return UserRecord(id=principal.user_id, email=principal.email or "")
