"""
tradeflow_authz.authz.roles

Role resolution.

Responsibilities:
- Map an identity to exactly one coarse `Role`.
- Degrade to `Role.none` (least privilege) on fetch failure or malformed values.
"""

from __future__ import annotations

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.authz.models import Outcome, Role
from tradeflow_authz.observability.logging import get_logger
from tradeflow_authz.policy_clients.authority import PolicyAuthority

log = get_logger(__name__)


class RoleResolver:
    def __init__(self, *, authority: PolicyAuthority) -> None:
        self._authority = authority

    async def resolve(self, identity: Identity) -> Role:
        return (await self.resolve_outcome(identity)).value

    async def resolve_outcome(self, identity: Identity) -> Outcome[Role]:
        try:
            raw = await self._authority.fetch_role(identity)
        except Exception as e:
            # Callers must be able to proceed with a safe default rather than crash.
            log.warning("authz.role_fetch_failed", subject=identity.subject, error=str(e))
            return Outcome(Role.none, degraded=True)

        role = Role.parse(raw)
        if role is Role.none and raw is not None and raw != Role.none.value:
            log.warning("authz.role_unrecognized", subject=identity.subject, value=repr(raw))
        return Outcome(role)
