"""
Membership Model

The (tenant, user, role) relation. At most one row exists per
(tenant, user) pair; the unique constraint is what the membership store
relies on for an unambiguous role lookup.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from workspace_hub.database import Base
import enum
import uuid


class TenantRole(str, enum.Enum):
    """
    Roles within a tenant.

    OWNER: Created the workspace, full control
    ADMIN: Manages members and can delete projects
    MEMBER: Reads and edits projects
    """
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class Membership(Base):
    __tablename__ = "tenant_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    role = Column(
        SQLEnum(TenantRole, values_callable=lambda roles: [r.value for r in roles], name="tenant_role"),
        nullable=False
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_users_tenant_user"),
    )

    def __repr__(self):
        return f"<Membership tenant={self.tenant_id} user={self.user_id} role={self.role}>"
