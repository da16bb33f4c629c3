"""
Tenant Schemas

Typed records for rows leaving the database layer, plus request/response
models for workspace and member endpoints.

TenantRecord and MembershipRecord are the only shapes the access pipeline
passes around; ORM rows are validated into them once, at the lookup.
"""
import re
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from workspace_hub.models.membership import TenantRole
from workspace_hub.schemas.user import UserRecord

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

# Labels that must never become tenant subdomains
RESERVED_SLUGS = frozenset({"www", "api", "app", "localhost", "static", "auth"})


class TenantRecord(BaseModel):
    """Validated tenant row."""
    id: str
    name: str
    slug: str

    class Config:
        from_attributes = True
        frozen = True


class MembershipRecord(BaseModel):
    """Validated membership row."""
    tenant_id: str
    user_id: str
    role: TenantRole

    class Config:
        from_attributes = True
        frozen = True


class WorkspaceCreate(BaseModel):
    """Request body for creating a workspace."""
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=63)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value: str) -> str:
        slug = value.strip().lower()
        if not SLUG_PATTERN.match(slug):
            raise ValueError("Slug may only contain lowercase letters, digits and hyphens")
        if slug.startswith("-") or slug.endswith("-"):
            raise ValueError("Slug cannot start or end with a hyphen")
        if slug in RESERVED_SLUGS:
            raise ValueError(f"'{slug}' is reserved")
        return slug

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Acme Corp",
                "slug": "acme"
            }
        }


class WorkspaceSummary(BaseModel):
    """A tenant the current user belongs to, with the URL to open it."""
    id: str
    name: str
    slug: str
    role: TenantRole
    url: str


class WorkspaceListResponse(BaseModel):
    workspaces: list[WorkspaceSummary]


class MemberInvite(BaseModel):
    """Invite a user (by email) into the current tenant."""
    email: EmailStr
    role: TenantRole = TenantRole.MEMBER


class MemberResponse(BaseModel):
    user_id: str
    email: str
    full_name: Optional[str] = None
    role: TenantRole
    joined_at: datetime


class MemberListResponse(BaseModel):
    members: list[MemberResponse]
    total: int


class TenantContextResponse(BaseModel):
    """
    Server-computed tenant context.

    Clients use this as the initial value of their context provider.
    """
    tenant: TenantRecord
    user: UserRecord
    role: TenantRole
