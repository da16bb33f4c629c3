"""
Database Models

Tenant-owned tables (memberships, projects) carry tenant_id and are only
ever queried with it.
"""
from workspace_hub.models.tenant import Tenant
from workspace_hub.models.user import User
from workspace_hub.models.membership import Membership, TenantRole
from workspace_hub.models.project import Project

__all__ = ["Tenant", "User", "Membership", "TenantRole", "Project"]
