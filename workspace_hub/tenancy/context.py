"""
Tenant Context

TenantContext is the read-only view {tenant, user, role} handed to
anything that renders tenant data. It is rebuilt, never patched: a new
snapshot replaces the old one whole.

Server side, the get_tenant_context dependency (api/deps.py) builds one
per request from the access evaluator.

Client side, TenantContextProvider keeps one alive for a session:

    async with TenantContextProvider(evaluator, session, events, navigate,
                                     hostname="acme.example.com",
                                     initial=server_context) as provider:
        await provider.ready()
        provider.context.role

It re-resolves the tenant and role itself after start, because the
server-provided value may be stale or missing, and it follows sign-in /
sign-out events for as long as it is open.

Events are matched to this client by client_id when one is given (the
same key the client sends as X-Client-Id). Otherwise a sign-out must
name the session being tracked and a sign-in must name the session the
session source now holds. Either way the user is re-read from the
session source, never taken from the event.
"""
from contextlib import AsyncExitStack, suppress
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
import asyncio
import logging

from workspace_hub.auth.events import AuthEventSource
from workspace_hub.auth.session import SessionSource
from workspace_hub.config import Settings, get_settings
from workspace_hub.core.exceptions import BackendUnavailableError
from workspace_hub.core.results import NotFound, TransientError
from workspace_hub.models.membership import TenantRole
from workspace_hub.schemas.auth import AuthEvent, AuthEventType
from workspace_hub.schemas.tenant import TenantRecord
from workspace_hub.schemas.user import UserRecord
from workspace_hub.tenancy.evaluator import AccessEvaluator, Allow, Deny, DenyReason, Fail
from workspace_hub.tenancy.hostname import build_tenant_url

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Could not load your workspace. Please retry."

Navigate = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class TenantContext:
    tenant: Optional[TenantRecord] = None
    user: Optional[UserRecord] = None
    role: Optional[TenantRole] = None
    is_loading: bool = False
    error: Optional[str] = None
    denied: Optional[DenyReason] = None

    @property
    def is_authorized(self) -> bool:
        return self.tenant is not None and self.user is not None and self.role is not None

    @classmethod
    def signed_out(cls) -> "TenantContext":
        return cls()


class TenantContextProvider:
    """
    Long-lived owner of a client session's tenant context.

    Only the provider's own resolution task and auth event handler write
    the snapshot. A resolution result is applied only if the provider is
    still open and no newer resolution has started since; anything else
    is dropped.
    """

    def __init__(
        self,
        evaluator: AccessEvaluator,
        session: SessionSource,
        events: AuthEventSource,
        navigate: Navigate,
        hostname: str,
        initial: Optional[TenantContext] = None,
        session_id: Optional[str] = None,
        client_id: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        self._evaluator = evaluator
        self._session = session
        self._events = events
        self._navigate = navigate
        self._hostname = hostname
        self._session_id = session_id if session_id is not None else session.session_id
        self._client_id = client_id
        self._settings = settings or get_settings()

        seed = initial or TenantContext()
        self._context = TenantContext(
            tenant=seed.tenant,
            user=seed.user,
            role=seed.role,
            is_loading=True,
        )

        self._generation = 0
        self._closed = False
        self._resolve_task: Optional[asyncio.Task] = None
        self._exit_stack = AsyncExitStack()

    @property
    def context(self) -> TenantContext:
        return self._context

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "TenantContextProvider":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        try:
            subscription = await self._events.subscribe(self._handle_auth_event)
            self._exit_stack.push_async_callback(subscription.unsubscribe)
            self._restart_resolution()
        except BaseException:
            await self.close()
            raise

    async def close(self) -> None:
        """Cancel pending work and release the auth subscription."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        try:
            await self._cancel_resolution()
        finally:
            await self._exit_stack.aclose()

    async def ready(self) -> TenantContext:
        """Wait until no resolution is pending and return the snapshot."""
        task = self._resolve_task
        while task is not None and not task.done():
            await asyncio.wait({task})
            task = self._resolve_task
        return self._context

    async def refresh(self) -> TenantContext:
        """Re-run resolution from the current session."""
        self._restart_resolution()
        return await self.ready()

    async def switch_tenant(self, slug: str) -> bool:
        """
        Navigate to another workspace.

        Returns False when no tenant has that slug; raises
        BackendUnavailableError when the directory cannot answer.
        """
        result = await self._evaluator.directory.resolve_tenant(slug)
        if isinstance(result, TransientError):
            logger.error(f"Error switching tenant to {slug}: {result.detail}")
            raise BackendUnavailableError(retry_after=self._settings.RETRY_AFTER_SECONDS)
        if isinstance(result, NotFound):
            return False

        await self._navigate(build_tenant_url(result.value.slug, settings=self._settings))
        return True

    def _restart_resolution(self) -> None:
        if self._closed:
            return
        self._generation += 1
        previous = self._resolve_task
        if previous is not None and not previous.done():
            previous.cancel()
        self._context = TenantContext(
            tenant=self._context.tenant,
            user=self._context.user,
            role=self._context.role,
            is_loading=True,
        )
        self._resolve_task = asyncio.create_task(self._resolve(self._generation))

    async def _cancel_resolution(self) -> None:
        task = self._resolve_task
        self._resolve_task = None
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    def _apply(self, generation: int, context: TenantContext) -> None:
        if self._closed or generation != self._generation:
            logger.debug("Discarding stale tenant context resolution")
            return
        self._context = context

    async def _resolve(self, generation: int) -> None:
        user = None
        try:
            user = await self._session.get_current_user()
            if user is None:
                self._apply(generation, TenantContext(denied=DenyReason.UNAUTHENTICATED))
                return
            decision = await self._evaluator.evaluate(self._hostname, user.id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error initializing tenant context")
            self._apply(generation, TenantContext(user=user, error=RETRY_MESSAGE))
            return

        if isinstance(decision, Allow):
            self._apply(generation, TenantContext(tenant=decision.tenant, user=user, role=decision.role))
        elif isinstance(decision, Fail):
            logger.warning(f"Tenant context resolution failed: {decision.detail}")
            self._apply(generation, TenantContext(user=user, error=RETRY_MESSAGE))
        elif isinstance(decision, Deny):
            # Never keep server-provided authorization once our own lookup says no
            self._apply(generation, TenantContext(user=user, denied=decision.reason))

    def _is_own_event(self, event: AuthEvent) -> bool:
        if self._client_id is not None:
            return event.client_id == self._client_id
        # Without a client key, a sign-in is ours once our session holds its token
        if event.type == AuthEventType.SIGNED_IN:
            return event.session_id == self._session.session_id
        return self._session_id is not None and event.session_id == self._session_id

    async def _handle_auth_event(self, event: AuthEvent) -> None:
        if self._closed or not self._is_own_event(event):
            return

        if event.type == AuthEventType.SIGNED_OUT:
            self._generation += 1
            await self._cancel_resolution()
            self._context = TenantContext.signed_out()
            await self._navigate(self._settings.SIGNIN_PATH)
        elif event.type == AuthEventType.SIGNED_IN:
            self._session_id = event.session_id
            self._restart_resolution()
