"""
Custom Exceptions

Centralized exception definitions for better error handling.
FastAPI converts these to HTTP responses; main.py registers handlers
that add a machine-readable "type" to the body.
"""
from fastapi import HTTPException, status


class TenantNotFoundError(HTTPException):
    """Raised when the request host does not resolve to a tenant."""

    def __init__(self, tenant_identifier: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant not found: {tenant_identifier}" if tenant_identifier else "Tenant not found"
        )


class TenantAccessDenied(HTTPException):
    """Raised when an authenticated user has no membership in the tenant."""

    def __init__(self, detail: str = "You are not a member of this workspace"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class BackendUnavailableError(HTTPException):
    """
    Raised when a directory or membership lookup fails for a transient reason.

    Never a denial: the client should retry.
    """

    def __init__(self, retry_after: int = 5):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Workspace service is temporarily unavailable. Please retry.",
            headers={"Retry-After": str(retry_after)}
        )


class ProjectNotFoundError(HTTPException):
    """Raised when project cannot be found."""

    def __init__(self, project_id: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project not found: {project_id}" if project_id else "Project not found"
        )


class MembershipNotFoundError(HTTPException):
    """Raised when removing a user who is not a member."""

    def __init__(self, user_id: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Membership not found: {user_id}" if user_id else "Membership not found"
        )


class SlugTakenError(HTTPException):
    """Raised when a workspace slug is already in use."""

    def __init__(self, slug: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Workspace URL '{slug}' is already taken"
        )


class DuplicateMembershipError(HTTPException):
    """Raised when a (tenant, user) membership already exists."""

    def __init__(self, email: str = ""):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{email} is already a member of this workspace" if email else "User is already a member"
        )


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidInputError(HTTPException):
    """Raised when input validation fails."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
