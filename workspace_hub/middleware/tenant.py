"""
Tenant Access Middleware

Runs on every request and decides whether it may reach the application.

Tenants are addressed by subdomain:
- acme.example.com -> tenant with slug "acme"
- contoso.example.com -> tenant with slug "contoso"

Per-request state machine (nothing carries over between requests):

    START
      -> PUBLIC_PATH_ALLOWED        public path, forwarded unannotated
      -> UNAUTHENTICATED            no session, redirect to sign-in
      -> evaluate(host, user)
           Deny(TENANT_NOT_FOUND | NO_TENANT) -> TENANT_RESOLUTION_FAILED, redirect to /404
           Deny(NOT_A_MEMBER)                 -> MEMBERSHIP_DENIED, redirect to unauthorized
           Fail                               -> BACKEND_UNAVAILABLE, 503 retryable
           Allow(tenant, role)                -> AUTHORIZED, forwarded with annotations

SECURITY: the x-tenant-* headers are stripped from every incoming request
before anything else happens. Only this middleware sets them.
"""
from dataclasses import dataclass
from typing import Optional
import enum
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from workspace_hub.config import Settings, get_settings
from workspace_hub.core.security import get_session_principal
from workspace_hub.models.membership import TenantRole
from workspace_hub.tenancy.evaluator import AccessEvaluator, Allow, Deny, DenyReason, Fail, get_default_evaluator
from workspace_hub.utils.logging import log_security_event

logger = logging.getLogger(__name__)

TENANT_ID_HEADER = "x-tenant-id"
TENANT_SLUG_HEADER = "x-tenant-slug"
TENANT_ROLE_HEADER = "x-tenant-role"
ANNOTATION_HEADERS = (TENANT_ID_HEADER, TENANT_SLUG_HEADER, TENANT_ROLE_HEADER)


class AccessState(str, enum.Enum):
    START = "start"
    PUBLIC_PATH_ALLOWED = "public_path_allowed"
    UNAUTHENTICATED = "unauthenticated"
    TENANT_RESOLUTION_FAILED = "tenant_resolution_failed"
    MEMBERSHIP_DENIED = "membership_denied"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    AUTHORIZED = "authorized"


@dataclass(frozen=True)
class RequestAnnotations:
    """What an authorized request carries downstream."""
    tenant_id: str
    tenant_slug: str
    role: TenantRole


def is_public_path(path: str, settings: Settings) -> bool:
    if path in settings.PUBLIC_EXACT_PATHS:
        return True
    return any(path.startswith(prefix) for prefix in settings.PUBLIC_PATH_PREFIXES)


def request_host(request: Request) -> str:
    return request.headers.get("host", "")


class TenantAccessMiddleware(BaseHTTPMiddleware):
    """
    First line of defense for tenant isolation.

    The evaluator is built lazily so the application can be imported
    before the database is configured.
    """

    def __init__(self, app, evaluator: Optional[AccessEvaluator] = None, settings: Optional[Settings] = None):
        super().__init__(app)
        self._evaluator = evaluator
        self.settings = settings or get_settings()

    @property
    def evaluator(self) -> AccessEvaluator:
        if self._evaluator is None:
            self._evaluator = get_default_evaluator()
        return self._evaluator

    async def dispatch(self, request: Request, call_next):
        self._strip_annotations(request)
        path = request.url.path

        if is_public_path(path, self.settings):
            logger.debug(f"{AccessState.PUBLIC_PATH_ALLOWED.value}: {path}")
            return await call_next(request)

        principal = get_session_principal(request)
        if principal is None:
            log_security_event(
                AccessState.UNAUTHENTICATED.value,
                {"path": path, "host": request_host(request)},
                logger
            )
            return self._redirect(request, self.settings.SIGNIN_PATH)

        decision = await self.evaluator.evaluate(request_host(request), principal.user_id)

        if isinstance(decision, Allow):
            self._annotate(request, RequestAnnotations(
                tenant_id=decision.tenant.id,
                tenant_slug=decision.tenant.slug,
                role=decision.role,
            ))
            logger.debug(
                f"{AccessState.AUTHORIZED.value}: {decision.tenant.slug} {path}",
                extra={"tenant_id": decision.tenant.id, "user_id": principal.user_id}
            )
            return await call_next(request)

        if isinstance(decision, Fail):
            return self._unavailable(request, decision, principal.user_id)

        return self._deny(request, decision, principal.user_id)

    def _deny(self, request: Request, decision: Deny, user_id: str) -> Response:
        details = {"path": request.url.path, "tenant_slug": decision.slug, "user_id": user_id}

        if decision.reason == DenyReason.NOT_A_MEMBER:
            log_security_event(AccessState.MEMBERSHIP_DENIED.value, details, logger)
            return self._redirect(request, self.settings.UNAUTHORIZED_PATH)

        if decision.reason == DenyReason.UNAUTHENTICATED:
            # Only reachable if the principal vanished between checks
            log_security_event(AccessState.UNAUTHENTICATED.value, details, logger)
            return self._redirect(request, self.settings.SIGNIN_PATH)

        # TENANT_NOT_FOUND and NO_TENANT
        log_security_event(AccessState.TENANT_RESOLUTION_FAILED.value, {**details, "reason": decision.reason.value}, logger)
        return self._redirect(request, self.settings.NOT_FOUND_PATH)

    def _unavailable(self, request: Request, decision: Fail, user_id: str) -> Response:
        log_security_event(
            AccessState.BACKEND_UNAVAILABLE.value,
            {"path": request.url.path, "user_id": user_id, "reason": decision.detail},
            logger
        )
        return JSONResponse(
            status_code=503,
            content={
                "detail": "Workspace service is temporarily unavailable. Please retry.",
                "type": "backend_unavailable",
                "retryable": decision.retryable,
            },
            headers={"Retry-After": str(self.settings.RETRY_AFTER_SECONDS)}
        )

    def _redirect(self, request: Request, target: str) -> RedirectResponse:
        return RedirectResponse(url=str(request.url.replace(path=target, query="")), status_code=307)

    def _strip_annotations(self, request: Request) -> None:
        headers = request.scope["headers"]
        stripped = [(k, v) for k, v in headers if k.decode("latin-1").lower() not in ANNOTATION_HEADERS]
        if len(stripped) != len(headers):
            logger.warning(
                "Dropped client-supplied tenant annotation headers",
                extra={"path": request.url.path}
            )
        request.scope["headers"] = stripped
        if hasattr(request, "_headers"):
            del request._headers

    def _annotate(self, request: Request, annotations: RequestAnnotations) -> None:
        request.state.tenant_access = annotations
        request.scope["headers"] = request.scope["headers"] + [
            (TENANT_ID_HEADER.encode("latin-1"), annotations.tenant_id.encode("latin-1")),
            (TENANT_SLUG_HEADER.encode("latin-1"), annotations.tenant_slug.encode("latin-1")),
            (TENANT_ROLE_HEADER.encode("latin-1"), annotations.role.value.encode("latin-1")),
        ]
        if hasattr(request, "_headers"):
            del request._headers
