"""
Workspace Provisioning

Creating tenants and managing who belongs to them. These functions take
the request's SQLAlchemy session and commit their own changes.

Creating a tenant and making its creator the owner happen in one
transaction, so a tenant never exists without an owner.
"""
from typing import List, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from workspace_hub.core.exceptions import (
    DuplicateMembershipError,
    MembershipNotFoundError,
    SlugTakenError,
)
from workspace_hub.models.membership import Membership, TenantRole
from workspace_hub.models.tenant import Tenant
from workspace_hub.models.user import User
from workspace_hub.schemas.tenant import MemberResponse, WorkspaceSummary
from workspace_hub.tenancy.hostname import build_tenant_url

logger = logging.getLogger(__name__)


def create_tenant(db: Session, name: str, slug: str, owner_id: str) -> Tenant:
    """
    Create a tenant and add owner_id as its owner.

    slug must already be validated and lowercased (WorkspaceCreate does it).
    """
    existing = db.query(Tenant.id).filter(Tenant.slug == slug).first()
    if existing:
        raise SlugTakenError(slug)

    tenant = Tenant(name=name, slug=slug)
    db.add(tenant)
    try:
        db.flush()
        db.add(Membership(tenant_id=tenant.id, user_id=owner_id, role=TenantRole.OWNER))
        db.commit()
    except IntegrityError:
        # Lost a race for the same slug
        db.rollback()
        raise SlugTakenError(slug)

    db.refresh(tenant)
    logger.info(f"Tenant created: {tenant.slug} ({tenant.id}) owner={owner_id}")
    return tenant


def add_tenant_user(db: Session, tenant_id: str, email: str, role: TenantRole = TenantRole.MEMBER) -> str:
    """
    Add a user to a tenant by email.

    Unknown emails get a placeholder account (no password) that the
    person completes by signing up. Returns the user id.
    """
    email = email.lower()
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email)
        db.add(user)
        db.flush()
        logger.info(f"Placeholder user created for invite: {user.id}")

    already_member = db.query(Membership.id).filter(
        Membership.tenant_id == tenant_id,
        Membership.user_id == user.id
    ).first()
    if already_member:
        db.rollback()
        raise DuplicateMembershipError(email)

    db.add(Membership(tenant_id=tenant_id, user_id=user.id, role=role))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateMembershipError(email)

    logger.info(f"User {user.id} added to tenant {tenant_id} as {role.value}")
    return user.id


def get_member_role(db: Session, tenant_id: str, user_id: str) -> TenantRole:
    role = db.query(Membership.role).filter(
        Membership.tenant_id == tenant_id,
        Membership.user_id == user_id
    ).scalar()

    if role is None:
        raise MembershipNotFoundError(user_id)
    return role


def remove_tenant_user(db: Session, tenant_id: str, user_id: str) -> None:
    """Delete the membership row; the user account itself stays."""
    membership = db.query(Membership).filter(
        Membership.tenant_id == tenant_id,
        Membership.user_id == user_id
    ).first()

    if membership is None:
        raise MembershipNotFoundError(user_id)

    db.delete(membership)
    db.commit()
    logger.info(f"User {user_id} removed from tenant {tenant_id}")


def list_user_tenants(db: Session, user_id: str) -> List[WorkspaceSummary]:
    """Every tenant the user belongs to, with their role and workspace URL."""
    rows: List[Tuple[Tenant, TenantRole]] = db.query(Tenant, Membership.role).join(
        Membership, Membership.tenant_id == Tenant.id
    ).filter(
        Membership.user_id == user_id
    ).order_by(Tenant.name).all()

    return [
        WorkspaceSummary(
            id=tenant.id,
            name=tenant.name,
            slug=tenant.slug,
            role=role,
            url=build_tenant_url(tenant.slug),
        )
        for tenant, role in rows
    ]


def list_members(db: Session, tenant_id: str) -> List[MemberResponse]:
    rows = db.query(Membership, User).join(
        User, User.id == Membership.user_id
    ).filter(
        Membership.tenant_id == tenant_id
    ).order_by(Membership.created_at).all()

    return [
        MemberResponse(
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=membership.role,
            joined_at=membership.created_at,
        )
        for membership, user in rows
    ]


def count_members(db: Session, tenant_id: str) -> int:
    return db.query(Membership).filter(Membership.tenant_id == tenant_id).count()
