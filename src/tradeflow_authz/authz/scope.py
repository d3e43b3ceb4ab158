"""
tradeflow_authz.authz.scope

Category scope resolution.

Responsibilities:
- Fetch the active category universe and, for non-admins, the identity's explicit grants.
- Compute the effective scope under the configured empty-grants policy.
- Degrade to a locked-down scope when either fetch fails.

Rules, in order:
1. admin: unrestricted over the whole universe; grants (if any) are ignored.
2. empty universe: unrestricted (there is nothing to intersect with).
3. zero grants: decided by `EmptyGrantsPolicy` (historically unrestricted).
4. otherwise: restricted to universe ∩ grants; grants for inactive or deleted
   categories drop out.
"""

from __future__ import annotations

from collections.abc import Iterable

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.authz.models import Category, EffectiveScope, Role
from tradeflow_authz.observability.logging import get_logger
from tradeflow_authz.policy_clients.authority import PolicyAuthority
from tradeflow_authz.settings import EmptyGrantsPolicy

log = get_logger(__name__)


def compute_scope(
    *,
    role: Role,
    universe: Iterable[Category],
    grants: Iterable[str],
    policy: EmptyGrantsPolicy = EmptyGrantsPolicy.unrestricted,
) -> EffectiveScope:
    cats = tuple(universe)
    if role is Role.admin or not cats:
        return EffectiveScope.unrestricted(cats)

    granted = frozenset(grants)
    if not granted:
        if policy == EmptyGrantsPolicy.deny_all:
            return EffectiveScope(restricted=True, allowed_category_ids=frozenset(), universe=cats)
        return EffectiveScope.unrestricted(cats)

    allowed = frozenset(c.id for c in cats if c.id in granted)
    return EffectiveScope(restricted=True, allowed_category_ids=allowed, universe=cats)


class CategoryScopeResolver:
    def __init__(
        self,
        *,
        authority: PolicyAuthority,
        empty_grants_policy: EmptyGrantsPolicy = EmptyGrantsPolicy.unrestricted,
    ) -> None:
        self._authority = authority
        self._policy = empty_grants_policy

    @property
    def empty_grants_policy(self) -> EmptyGrantsPolicy:
        return self._policy

    async def resolve(self, identity: Identity, role: Role) -> EffectiveScope:
        try:
            universe = await self._authority.fetch_active_categories()
            grants: frozenset[str] = frozenset()
            if role is not Role.admin:
                grants = await self._authority.fetch_category_grants(identity)
        except Exception as e:
            # Ambiguity must never widen access to category-scoped data.
            log.warning("authz.scope_fetch_failed", subject=identity.subject, error=str(e))
            return EffectiveScope.locked_down()

        return compute_scope(role=role, universe=universe, grants=grants, policy=self._policy)


# --- Module Notes -----------------------------------------------------------
# The universe is ordered by name for display only; decisions use id membership.
