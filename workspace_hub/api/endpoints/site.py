"""
Workspace Pages

The tenant home screen, the server-side tenant context handed to clients,
and the page unknown workspaces are redirected to.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from workspace_hub.api.deps import get_tenant_context
from workspace_hub.database import get_db
from workspace_hub.models.project import Project
from workspace_hub.schemas.project import DashboardResponse, DashboardStats
from workspace_hub.schemas.tenant import TenantContextResponse
from workspace_hub.tenancy.context import TenantContext
from workspace_hub.tenancy.provisioning import count_members

router = APIRouter(tags=["workspace"])

RECENT_PROJECTS_LIMIT = 5


@router.get("/404", status_code=status.HTTP_404_NOT_FOUND)
async def not_found_page():
    """Where requests for unknown workspaces are redirected."""
    return {
        "page": "not_found",
        "message": "This workspace does not exist",
    }


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Tenant home: project counts, team size and the latest projects."""
    tenant_id = context.tenant.id

    counts = dict(
        db.query(Project.status, func.count(Project.id))
        .filter(Project.tenant_id == tenant_id)
        .group_by(Project.status)
        .all()
    )

    recent = db.query(Project).filter(
        Project.tenant_id == tenant_id
    ).order_by(Project.created_at.desc()).limit(RECENT_PROJECTS_LIMIT).all()

    return DashboardResponse(
        tenant_name=context.tenant.name,
        tenant_slug=context.tenant.slug,
        user_email=context.user.email,
        role=context.role.value,
        stats=DashboardStats(
            active_projects=counts.get("active", 0),
            completed_projects=counts.get("completed", 0),
            team_members=count_members(db, tenant_id),
        ),
        recent_projects=recent,
    )


@router.get("/api/v1/tenant/context", response_model=TenantContextResponse)
async def tenant_context(context: TenantContext = Depends(get_tenant_context)):
    """The tenant, user and role this request resolved to."""
    return TenantContextResponse(tenant=context.tenant, user=context.user, role=context.role)
