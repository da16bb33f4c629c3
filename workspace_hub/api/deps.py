"""
API Dependencies

Reusable FastAPI dependencies for authentication and tenant access.

get_tenant_context runs the same AccessEvaluator the middleware runs.
Endpoints that show tenant data depend on it rather than on the
middleware having run, so a route can never render for a non-member.
"""
from typing import Callable, Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from workspace_hub.auth.events import get_auth_events
from workspace_hub.config import get_settings
from workspace_hub.core.exceptions import (
    AuthenticationError,
    BackendUnavailableError,
    TenantAccessDenied,
    TenantNotFoundError,
)
from workspace_hub.core.permissions import require_role
from workspace_hub.core.security import get_session_principal
from workspace_hub.database import get_db
from workspace_hub.middleware.tenant import request_host
from workspace_hub.models.membership import TenantRole
from workspace_hub.models.user import User
from workspace_hub.schemas.auth import SessionPrincipal
from workspace_hub.schemas.user import UserRecord
from workspace_hub.tenancy.context import TenantContext
from workspace_hub.tenancy.evaluator import AccessEvaluator, Allow, Deny, DenyReason, get_default_evaluator
import logging

logger = logging.getLogger(__name__)

_evaluator: Optional[AccessEvaluator] = None


def get_access_evaluator() -> AccessEvaluator:
    global _evaluator
    if _evaluator is None:
        _evaluator = get_default_evaluator()
    return _evaluator


def get_principal(request: Request) -> SessionPrincipal:
    """Verified session principal; 401 if missing or invalid."""
    principal = get_session_principal(request)
    if principal is None:
        raise AuthenticationError("Not signed in")
    return principal


def get_current_user(
    principal: SessionPrincipal = Depends(get_principal),
    db: Session = Depends(get_db)
) -> UserRecord:
    """
    Current user, loaded from the users table.

    A valid token for a deleted or deactivated account is rejected.
    """
    user = db.query(User).filter(User.id == principal.user_id).first()
    if not user or not user.is_active:
        logger.warning(f"Token for unknown or inactive user: {principal.user_id}")
        raise AuthenticationError("User not found")
    return UserRecord.model_validate(user)


def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[UserRecord]:
    principal = get_session_principal(request)
    if principal is None:
        return None
    user = db.query(User).filter(User.id == principal.user_id).first()
    if not user or not user.is_active:
        return None
    return UserRecord.model_validate(user)


async def get_tenant_context(
    request: Request,
    user: Optional[UserRecord] = Depends(get_current_user_optional),
    evaluator: AccessEvaluator = Depends(get_access_evaluator)
) -> TenantContext:
    """
    Server-side tenant context for this request.

    Denials map onto HTTP errors; a transient lookup failure is a 503,
    never a 403.
    """
    decision = await evaluator.evaluate(request_host(request), user.id if user else None)

    if isinstance(decision, Allow):
        return TenantContext(tenant=decision.tenant, user=user, role=decision.role)

    if isinstance(decision, Deny):
        if decision.reason == DenyReason.UNAUTHENTICATED:
            raise AuthenticationError("Not signed in")
        if decision.reason == DenyReason.NOT_A_MEMBER:
            raise TenantAccessDenied()
        raise TenantNotFoundError(decision.slug or "")

    raise BackendUnavailableError(retry_after=get_settings().RETRY_AFTER_SECONDS)


def require_tenant_role(required_role: TenantRole) -> Callable[..., TenantContext]:
    """
    Dependency factory: tenant context whose role is at least required_role.

        @router.delete("/{id}")
        async def delete(ctx: TenantContext = Depends(require_tenant_role(TenantRole.ADMIN))):
    """
    async def dependency(context: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        require_role(context.role, required_role)
        return context

    return dependency


def get_auth_event_bus():
    return get_auth_events()
