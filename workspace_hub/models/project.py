"""
Project Model

Projects are the tenant-scoped resource managed from the workspace
screens. Every query must filter on tenant_id.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from workspace_hub.database import Base
import uuid

PROJECT_STATUSES = ("active", "completed", "archived")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Creator; kept when the user later leaves the tenant
    created_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="active", nullable=False)  # active, completed, archived

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="projects")

    __table_args__ = (
        Index('idx_project_tenant_status', 'tenant_id', 'status'),
        Index('idx_project_tenant_created', 'tenant_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Project {self.name} (tenant={self.tenant_id})>"
