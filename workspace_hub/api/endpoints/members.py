"""
Member Management Endpoints

Who belongs to the current tenant.

RBAC:
- List members: any member
- Invite / remove: owner or admin; nobody grants a role above their own
  or removes someone ranked above them
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from workspace_hub.api.deps import get_tenant_context, require_tenant_role
from workspace_hub.core.exceptions import InvalidInputError
from workspace_hub.core.permissions import PermissionDenied, can_grant_role, can_remove_member
from workspace_hub.database import get_db
from workspace_hub.models.membership import TenantRole
from workspace_hub.schemas.tenant import MemberInvite, MemberListResponse, MemberResponse
from workspace_hub.tenancy.context import TenantContext
from workspace_hub.tenancy.provisioning import add_tenant_user, get_member_role, list_members, remove_tenant_user
from workspace_hub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=MemberListResponse)
async def get_members(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    members = list_members(db, context.tenant.id)
    return MemberListResponse(members=members, total=len(members))


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def invite_member(
    invite: MemberInvite,
    context: TenantContext = Depends(require_tenant_role(TenantRole.ADMIN)),
    db: Session = Depends(get_db)
):
    """
    Add someone to the workspace by email.

    If nobody has signed up with that email yet, a placeholder account is
    created and completed when they sign up.
    """
    if not can_grant_role(context.role, invite.role):
        raise PermissionDenied(detail=f"Cannot grant the {invite.role.value} role")

    user_id = add_tenant_user(db, context.tenant.id, invite.email, invite.role)

    logger.info(
        f"Member invited to {context.tenant.slug} by {context.user.id}",
        extra={"tenant_id": context.tenant.id, "user_id": user_id, "role": invite.role.value}
    )

    member = next(m for m in list_members(db, context.tenant.id) if m.user_id == user_id)
    return member


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    user_id: str,
    context: TenantContext = Depends(require_tenant_role(TenantRole.ADMIN)),
    db: Session = Depends(get_db)
):
    """Remove a member. Removing yourself is not allowed here."""
    if user_id == context.user.id:
        raise InvalidInputError("You cannot remove yourself from the workspace")

    member_role = get_member_role(db, context.tenant.id, user_id)
    if not can_remove_member(context.role, member_role):
        raise PermissionDenied(detail=f"Cannot remove a member with the {member_role.value} role")

    remove_tenant_user(db, context.tenant.id, user_id)
    return None
