"""
Workspace Endpoints

Account-level operations served from the root domain: listing the
workspaces a user belongs to and creating new ones. These sit under
/api/account, which the tenant access middleware treats as public, so
authentication is enforced here by get_current_user.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from workspace_hub.api.deps import get_current_user
from workspace_hub.database import get_db
from workspace_hub.models.membership import TenantRole
from workspace_hub.schemas.tenant import WorkspaceCreate, WorkspaceListResponse, WorkspaceSummary
from workspace_hub.schemas.user import UserRecord
from workspace_hub.tenancy.hostname import build_tenant_url
from workspace_hub.tenancy.provisioning import create_tenant, list_user_tenants
from workspace_hub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/account/workspaces", tags=["workspaces"])


@router.get("", response_model=WorkspaceListResponse)
async def list_workspaces(
    current_user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Every workspace the current user is a member of."""
    return WorkspaceListResponse(workspaces=list_user_tenants(db, current_user.id))


@router.post("", response_model=WorkspaceSummary, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    workspace: WorkspaceCreate,
    current_user: UserRecord = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a workspace owned by the current user.

    The slug becomes the subdomain. It is validated by WorkspaceCreate
    (422) and must be unused (409).
    """
    tenant = create_tenant(db, name=workspace.name, slug=workspace.slug, owner_id=current_user.id)

    return WorkspaceSummary(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        role=TenantRole.OWNER,
        url=build_tenant_url(tenant.slug),
    )
