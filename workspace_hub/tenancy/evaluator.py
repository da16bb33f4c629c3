"""
Access Evaluator

Combines the tenant directory and the membership store into one
access decision for (hostname, user). The tenant access middleware and
the endpoint dependencies both call evaluate(); neither re-implements
any part of it.

Algorithm:
1. slug = first hostname label; none -> Deny(NO_TENANT)
2. no user -> Deny(UNAUTHENTICATED)
3. directory lookup: NotFound -> Deny(TENANT_NOT_FOUND)
4. membership lookup (needs the tenant id, so always second):
   NotFound -> Deny(NOT_A_MEMBER)
5. Allow(tenant, role)

A TransientError at step 3 or 4 yields Fail, never a Deny.
"""
from dataclasses import dataclass
from typing import Optional, Union
import enum
import logging

from workspace_hub.core.results import NotFound, TransientError
from workspace_hub.models.membership import TenantRole
from workspace_hub.schemas.tenant import TenantRecord
from workspace_hub.tenancy.directory import SqlTenantDirectory, TenantDirectory
from workspace_hub.tenancy.hostname import extract_tenant_slug
from workspace_hub.tenancy.membership import MembershipStore, SqlMembershipStore

logger = logging.getLogger(__name__)


class DenyReason(str, enum.Enum):
    NO_TENANT = "no_tenant"
    UNAUTHENTICATED = "unauthenticated"
    TENANT_NOT_FOUND = "tenant_not_found"
    NOT_A_MEMBER = "not_a_member"


@dataclass(frozen=True)
class Allow:
    tenant: TenantRecord
    role: TenantRole


@dataclass(frozen=True)
class Deny:
    reason: DenyReason
    slug: Optional[str] = None


@dataclass(frozen=True)
class Fail:
    detail: str
    retryable: bool = True


AccessDecision = Union[Allow, Deny, Fail]


class AccessEvaluator:
    """Stateless; safe to share between requests."""

    def __init__(self, directory: TenantDirectory, memberships: MembershipStore):
        self.directory = directory
        self.memberships = memberships

    async def evaluate(self, hostname: Optional[str], user_id: Optional[str]) -> AccessDecision:
        slug = extract_tenant_slug(hostname)
        if slug is None:
            return Deny(DenyReason.NO_TENANT)

        if not user_id:
            return Deny(DenyReason.UNAUTHENTICATED, slug=slug)

        tenant_result = await self.directory.resolve_tenant(slug)
        if isinstance(tenant_result, TransientError):
            return Fail(detail=tenant_result.detail)
        if isinstance(tenant_result, NotFound):
            return Deny(DenyReason.TENANT_NOT_FOUND, slug=slug)

        tenant = tenant_result.value
        role_result = await self.memberships.resolve_role(tenant.id, user_id)
        if isinstance(role_result, TransientError):
            return Fail(detail=role_result.detail)
        if isinstance(role_result, NotFound):
            return Deny(DenyReason.NOT_A_MEMBER, slug=slug)

        logger.debug(f"Access allowed: user={user_id} tenant={tenant.slug} role={role_result.value.value}")
        return Allow(tenant=tenant, role=role_result.value)


def get_default_evaluator() -> AccessEvaluator:
    """Evaluator backed by the application database."""
    return AccessEvaluator(SqlTenantDirectory(), SqlMembershipStore())
