"""
tradeflow_authz.authz.facade

Authorization facade (cache + lifecycle owner).

Responsibilities:
- Compose role, permission and scope resolution into one consistent `AuthorizationView`.
- Cache views per identity and serve synchronous decisions until the next session change.
- Invalidate on session events and discard resolutions that finish after an invalidation.
- Expose an observable `loading` state so consumers can defer access-sensitive work.

State machine per identity: UNRESOLVED -> RESOLVING -> READY, and READY -> RESOLVING
when a session event invalidates the cache. RESOLVING always reaches READY because the
resolvers degrade to safe defaults instead of raising.
"""

from __future__ import annotations

import asyncio

import structlog

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.auth.session import SessionEvent, SessionSource, Unsubscribe
from tradeflow_authz.authz.models import (
    AuthorizationView,
    CapabilitySet,
    EffectiveScope,
    Module,
    Outcome,
    ResolutionState,
    Role,
)
from tradeflow_authz.authz.permissions import PermissionResolver
from tradeflow_authz.authz.roles import RoleResolver
from tradeflow_authz.authz.scope import CategoryScopeResolver
from tradeflow_authz.errors import StaleIdentityError
from tradeflow_authz.observability.logging import get_logger

log = get_logger(__name__)


class AuthorizationFacade:
    def __init__(
        self,
        *,
        session: SessionSource,
        roles: RoleResolver,
        permissions: PermissionResolver,
        scopes: CategoryScopeResolver,
    ) -> None:
        self._session = session
        self._roles = roles
        self._permissions = permissions
        self._scopes = scopes

        self._cache: dict[str, AuthorizationView] = {}
        self._states: dict[str, ResolutionState] = {}
        self._inflight: dict[str, asyncio.Task[AuthorizationView | None]] = {}
        # Strong references to running cycles, including ones already invalidated.
        self._tasks: set[asyncio.Task[AuthorizationView | None]] = set()
        self._generation = 0
        # Subscribed from construction; `close()` disposes.
        self._unsubscribe: Unsubscribe | None = session.subscribe(self._on_session_change)

    # --- lifecycle ---------------------------------------------------------

    async def start(self) -> AuthorizationView | None:
        """
        Resolve the current identity, if any (re-subscribing after `close()`).

        Follows identity switches that happen while resolving and returns the view
        for whoever is signed in when resolution settles, or None once signed out.
        """

        if self._unsubscribe is None:
            self._unsubscribe = self._session.subscribe(self._on_session_change)
        return await self._authorize(None)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.invalidate()

    def invalidate(self) -> None:
        # Single mutator of the cache. Runs without suspension, so no cycle can observe
        # a half-cleared state.
        self._generation += 1
        self._cache.clear()
        self._states.clear()
        self._inflight.clear()
        log.info("authz.invalidated", generation=self._generation)

    async def refresh(self) -> AuthorizationView:
        self.invalidate()
        return await self.get_authorization()

    # --- resolution --------------------------------------------------------

    @property
    def state(self) -> ResolutionState:
        identity = self._session.current_identity()
        if identity is None:
            return ResolutionState.unresolved
        return self._states.get(identity.subject, ResolutionState.unresolved)

    @property
    def loading(self) -> bool:
        # Signed out is not loading: there is simply nothing to authorize.
        if self._session.current_identity() is None:
            return False
        return self.state is not ResolutionState.ready

    @property
    def view(self) -> AuthorizationView | None:
        identity = self._session.current_identity()
        if identity is None:
            return None
        return self._cache.get(identity.subject)

    async def get_authorization(self, identity: Identity | None = None) -> AuthorizationView:
        """
        Return the view for `identity` (default: the session's current identity).

        The first call per identity suspends until resolution completes; later calls
        return the cached view. Without an explicit identity the call follows identity
        switches made while it waits. Raises `StaleIdentityError` when nobody is signed
        in, or when an explicitly passed identity is not the current one.
        """

        view = await self._authorize(identity)
        if view is None:
            raise StaleIdentityError("no active session")
        return view

    async def _authorize(self, requested: Identity | None) -> AuthorizationView | None:
        while True:
            identity = requested or self._session.current_identity()
            if identity is None:
                return None
            self._ensure_current(identity)

            cached = self._cache.get(identity.subject)
            if cached is not None:
                return cached

            task = self._inflight.get(identity.subject) or self._start_cycle(identity)
            # Shield: a cancelled caller must not cancel a cycle other callers share.
            view = await asyncio.shield(task)
            if view is not None:
                return view
            # Invalidated mid-flight: go round again for whoever is signed in now.

    def _ensure_current(self, identity: Identity) -> None:
        current = self._session.current_identity()
        if current is None:
            raise StaleIdentityError("no active session")
        if identity.subject != current.subject:
            raise StaleIdentityError("identity is not the current session identity")

    def _start_cycle(self, identity: Identity) -> asyncio.Task[AuthorizationView | None]:
        self._states[identity.subject] = ResolutionState.resolving
        task = asyncio.get_running_loop().create_task(
            self._resolve(identity, self._generation),
            name=f"authz-resolve:{identity.subject}",
        )
        self._inflight[identity.subject] = task
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_cycle_done(identity.subject, t))
        return task

    def _on_cycle_done(self, subject: str, task: asyncio.Task[AuthorizationView | None]) -> None:
        self._tasks.discard(task)
        if self._inflight.get(subject) is task:
            del self._inflight[subject]
        if not task.cancelled() and task.exception() is not None:
            log.error("authz.resolution_failed", subject=subject, error=str(task.exception()))

    async def _resolve(self, identity: Identity, generation: int) -> AuthorizationView | None:
        structlog.contextvars.bind_contextvars(authz_generation=generation)
        log.info("authz.resolution_started", subject=identity.subject)

        async def role_then_scope() -> tuple[Outcome[Role], EffectiveScope]:
            role = await self._roles.resolve_outcome(identity)
            return role, await self._scopes.resolve(identity, role.value)

        # Permissions do not depend on the role, so they run alongside role -> scope.
        (role, scope), capabilities = await asyncio.gather(
            role_then_scope(),
            self._permissions.resolve_outcome(identity),
        )

        if generation != self._generation:
            log.info("authz.resolution_discarded", subject=identity.subject)
            return None

        degraded = {
            name
            for name, flag in (
                ("role", role.degraded),
                ("permissions", capabilities.degraded),
                ("scope", scope.degraded),
            )
            if flag
        }
        view = AuthorizationView(
            identity=identity,
            role=role.value,
            capabilities=capabilities.value,
            scope=scope,
            degraded=frozenset(degraded),
        )
        self._cache[identity.subject] = view
        self._states[identity.subject] = ResolutionState.ready
        log.info(
            "authz.resolution_ready",
            subject=identity.subject,
            role=str(view.role),
            capabilities=len(view.capabilities),
            restricted=view.scope.restricted,
            degraded=sorted(degraded),
        )
        return view

    def _on_session_change(self, event: SessionEvent) -> None:
        self.invalidate()
        if event.identity is None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Emitted outside the event loop: resolve lazily on the next request.
            return
        self._start_cycle(event.identity)

    # --- consumer surface (fails closed until READY) -----------------------

    @property
    def role(self) -> Role:
        view = self.view
        return view.role if view else Role.none

    @property
    def is_admin(self) -> bool:
        view = self.view
        return bool(view and view.is_admin)

    @property
    def is_sales(self) -> bool:
        view = self.view
        return bool(view and view.is_sales)

    @property
    def is_inventory(self) -> bool:
        view = self.view
        return bool(view and view.is_inventory)

    @property
    def is_accountant(self) -> bool:
        view = self.view
        return bool(view and view.is_accountant)

    @property
    def capabilities(self) -> CapabilitySet:
        view = self.view
        return view.capabilities if view else CapabilitySet.empty()

    @property
    def has_restrictions(self) -> bool:
        view = self.view
        return view.has_restrictions if view else True

    def can_view(self, module: Module | str) -> bool:
        return self.capabilities.can_view(module)

    def can_create(self, module: Module | str) -> bool:
        return self.capabilities.can_create(module)

    def can_edit(self, module: Module | str) -> bool:
        return self.capabilities.can_edit(module)

    def can_delete(self, module: Module | str) -> bool:
        return self.capabilities.can_delete(module)

    def can_access_category(self, category_id: str) -> bool:
        view = self.view
        return bool(view and view.can_access_category(category_id))

    def filter_ids_for_query(self) -> frozenset[str] | None:
        view = self.view
        if view is None:
            return frozenset()
        return view.filter_ids_for_query()


# --- Module Notes -----------------------------------------------------------
# The facade is passed by reference to consumers; there is no module-level instance.
