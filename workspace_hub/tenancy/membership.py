"""
Membership Store

Resolves (tenant id, user id) to the member's role.

No row means no access: the store never invents a default role.
"""
from typing import Callable, Protocol
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from workspace_hub.core.results import Found, LookupResult, NotFound, TransientError
from workspace_hub.database import SessionLocal
from workspace_hub.models.membership import Membership, TenantRole
from workspace_hub.schemas.tenant import MembershipRecord

logger = logging.getLogger(__name__)


class MembershipStore(Protocol):
    async def resolve_role(self, tenant_id: str, user_id: str) -> LookupResult[TenantRole]:
        ...


class SqlMembershipStore:
    """Membership store backed by the tenant_users table."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def resolve_role(self, tenant_id: str, user_id: str) -> LookupResult[TenantRole]:
        return await run_in_threadpool(self._resolve_role, tenant_id, user_id)

    def _resolve_role(self, tenant_id: str, user_id: str) -> LookupResult[TenantRole]:
        db = self._session_factory()
        try:
            # (tenant_id, user_id) is unique, so at most one row comes back
            membership = db.query(Membership).filter(
                Membership.tenant_id == tenant_id,
                Membership.user_id == user_id
            ).one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                f"Membership lookup failed: {e}",
                extra={"tenant_id": tenant_id, "user_id": user_id}
            )
            return TransientError(detail="membership store unavailable")
        finally:
            db.close()

        if membership is None:
            return NotFound()

        return Found(MembershipRecord.model_validate(membership).role)
