"""
tradeflow_authz.authz.permissions

Permission resolution.

Responsibilities:
- Fetch the server-authored (module, action) grants for an identity.
- Drop pairs this client does not recognize.
- Degrade to the empty set (deny-all) on fetch failure.
"""

from __future__ import annotations

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.authz.models import Action, Capability, CapabilitySet, Module, Outcome
from tradeflow_authz.observability.logging import get_logger
from tradeflow_authz.policy_clients.authority import PolicyAuthority

log = get_logger(__name__)


class PermissionResolver:
    """
    No local role-to-permission table: grants may be role-derived or individually
    overridden server-side, and the server's answer is taken as-is.
    """

    def __init__(self, *, authority: PolicyAuthority) -> None:
        self._authority = authority

    async def resolve(self, identity: Identity) -> CapabilitySet:
        return (await self.resolve_outcome(identity)).value

    async def resolve_outcome(self, identity: Identity) -> Outcome[CapabilitySet]:
        try:
            rows = await self._authority.fetch_permissions(identity)
        except Exception as e:
            log.warning("authz.permissions_fetch_failed", subject=identity.subject, error=str(e))
            return Outcome(CapabilitySet.empty(), degraded=True)

        granted: set[Capability] = set()
        for row in rows:
            try:
                granted.add(Capability(Module(row.module), Action(row.action)))
            except ValueError:
                log.warning(
                    "authz.permission_unrecognized",
                    subject=identity.subject,
                    module=row.module,
                    action=row.action,
                )
        return Outcome(CapabilitySet(frozenset(granted)))
