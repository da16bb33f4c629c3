"""
Permission System (RBAC)

Role checks inside a tenant. The role always comes from the resolved
membership; there is no default role.

Role hierarchy: OWNER > ADMIN > MEMBER
"""
from fastapi import HTTPException, status
from workspace_hub.models.membership import TenantRole

ROLE_HIERARCHY = {
    TenantRole.MEMBER: 1,
    TenantRole.ADMIN: 2,
    TenantRole.OWNER: 3,
}


class PermissionDenied(HTTPException):
    """Custom exception for permission denied errors."""

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


def has_role(role: TenantRole, required_role: TenantRole) -> bool:
    """True if role is at least required_role."""
    return ROLE_HIERARCHY[role] >= ROLE_HIERARCHY[required_role]


def require_role(role: TenantRole, required_role: TenantRole) -> None:
    """Raise PermissionDenied if role is below required_role."""
    if not has_role(role, required_role):
        raise PermissionDenied(
            detail=f"This action requires {required_role.value} role or higher"
        )


def can_delete_project(role: TenantRole) -> bool:
    """Only owners and admins delete projects."""
    return has_role(role, TenantRole.ADMIN)


def can_modify_project(role: TenantRole) -> bool:
    """Every member can edit any project (collaborative editing)."""
    return has_role(role, TenantRole.MEMBER)


def can_grant_role(role: TenantRole, granted: TenantRole) -> bool:
    """Owners and admins invite; nobody grants a role above their own."""
    return has_role(role, TenantRole.ADMIN) and has_role(role, granted)


def can_remove_member(role: TenantRole, member_role: TenantRole) -> bool:
    """Owners and admins remove members, never one ranked above them."""
    return has_role(role, TenantRole.ADMIN) and has_role(role, member_role)
