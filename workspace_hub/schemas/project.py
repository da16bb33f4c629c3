"""
Project Schemas

Request/response models for project operations.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

STATUS_PATTERN = "^(active|completed|archived)$"


class ProjectBase(BaseModel):
    """Base project schema."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""
    status: str = Field("active", pattern=STATUS_PATTERN)


class ProjectUpdate(BaseModel):
    """Schema for updating a project. All fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)


class ProjectResponse(ProjectBase):
    """Project response schema."""
    id: str
    tenant_id: str
    created_by: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    """Paginated list of projects."""
    projects: list[ProjectResponse]
    total: int
    page: int
    page_size: int


class DashboardStats(BaseModel):
    active_projects: int
    completed_projects: int
    team_members: int


class DashboardResponse(BaseModel):
    """Tenant home screen data."""
    tenant_name: str
    tenant_slug: str
    user_email: str
    role: str
    stats: DashboardStats
    recent_projects: list[ProjectResponse]
