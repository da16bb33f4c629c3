"""
Project Management Endpoints

CRUD operations for projects within the tenant resolved from the host.

RBAC:
- List/view/create/update projects: any member
- Delete project: owner or admin

TENANT_ISOLATION: every query filters on the tenant id of the resolved
TenantContext, never on anything the client sent.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from workspace_hub.database import get_db
from workspace_hub.models.project import Project
from workspace_hub.schemas.project import (
    STATUS_PATTERN,
    ProjectResponse,
    ProjectCreate,
    ProjectUpdate,
    ProjectListResponse
)
from workspace_hub.api.deps import get_tenant_context
from workspace_hub.core.permissions import can_delete_project, can_modify_project
from workspace_hub.core.exceptions import ProjectNotFoundError
from workspace_hub.tenancy.context import TenantContext
from workspace_hub.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


def _get_tenant_project(db: Session, context: TenantContext, project_id: str) -> Project:
    project = db.query(Project).filter(
        Project.id == project_id,
        Project.tenant_id == context.tenant.id
    ).first()

    if not project:
        raise ProjectNotFoundError(project_id)
    return project


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern=STATUS_PATTERN),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """
    List projects in the current tenant, newest first.

    Supports filtering by status. Paginated.
    """
    query = db.query(Project).filter(Project.tenant_id == context.tenant.id)

    if status:
        query = query.filter(Project.status == status)

    total = query.count()

    offset = (page - 1) * page_size
    projects = query.order_by(
        Project.created_at.desc()
    ).offset(offset).limit(page_size).all()

    logger.debug(f"Listed {len(projects)} projects for tenant {context.tenant.id}")

    return ProjectListResponse(
        projects=projects,
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Get project by ID. A project of another tenant is a 404."""
    return _get_tenant_project(db, context, project_id)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Create a project. The current user is recorded as its creator."""
    new_project = Project(
        tenant_id=context.tenant.id,
        created_by=context.user.id,
        name=project_data.name,
        description=project_data.description,
        status=project_data.status
    )

    db.add(new_project)
    db.commit()
    db.refresh(new_project)

    logger.info(
        f"Project created: {new_project.id} by {context.user.id}",
        extra={"tenant_id": context.tenant.id, "user_id": context.user.id}
    )

    return new_project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Update project fields. Only fields present in the body change."""
    project = _get_tenant_project(db, context, project_id)

    if not can_modify_project(context.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to modify this project"
        )

    update_data = project_data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(project, field, value)

    db.commit()
    db.refresh(project)

    logger.info(f"Project updated: {project.id} by {context.user.id}")

    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """Permanently delete a project. Owners and admins only."""
    project = _get_tenant_project(db, context, project_id)

    if not can_delete_project(context.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this project"
        )

    db.delete(project)
    db.commit()

    logger.info(f"Project deleted: {project_id} by {context.user.id}")
    return None
