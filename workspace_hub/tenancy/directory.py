"""
Tenant Directory

Resolves a subdomain slug to a tenant record.

Lookup is an exact equality match on the stored (lowercase) slug. A
missing tenant is returned as NotFound; database failures come back as
TransientError so callers never mistake an outage for "no such tenant".
"""
from typing import Callable, Protocol
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from workspace_hub.core.results import Found, LookupResult, NotFound, TransientError
from workspace_hub.database import SessionLocal
from workspace_hub.models.tenant import Tenant
from workspace_hub.schemas.tenant import TenantRecord

logger = logging.getLogger(__name__)


class TenantDirectory(Protocol):
    async def resolve_tenant(self, slug: str) -> LookupResult[TenantRecord]:
        ...


class SqlTenantDirectory:
    """
    Tenant directory backed by the tenants table.

    Each lookup opens its own short-lived session and runs the blocking
    query in the threadpool.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    async def resolve_tenant(self, slug: str) -> LookupResult[TenantRecord]:
        return await run_in_threadpool(self._resolve_tenant, slug.lower())

    def _resolve_tenant(self, slug: str) -> LookupResult[TenantRecord]:
        db = self._session_factory()
        try:
            tenant = db.query(Tenant).filter(Tenant.slug == slug).one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Tenant lookup failed for slug {slug}: {e}")
            return TransientError(detail="tenant directory unavailable")
        finally:
            db.close()

        if tenant is None:
            return NotFound()

        return Found(TenantRecord.model_validate(tenant))
