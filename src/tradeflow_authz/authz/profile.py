"""
tradeflow_authz.authz.profile

Display profile resolution for the signed-in identity.

Responsibilities:
- Fetch the profile row (full name, email) for an identity.
- Derive header initials.
- Fall back to a generic profile when the fetch fails.
"""

from __future__ import annotations

from dataclasses import dataclass

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.observability.logging import get_logger
from tradeflow_authz.policy_clients.authority import PolicyAuthority

log = get_logger(__name__)

DEFAULT_NAME = "User"


@dataclass(frozen=True, slots=True)
class UserProfile:
    full_name: str
    email: str | None
    initials: str


def initials_for(full_name: str) -> str:
    # "Sara al Harbi" -> "SA"
    return "".join(part[0] for part in full_name.split()).upper()[:2]


class ProfileResolver:
    def __init__(self, *, authority: PolicyAuthority) -> None:
        self._authority = authority

    async def resolve(self, identity: Identity) -> UserProfile | None:
        try:
            row = await self._authority.fetch_profile(identity)
        except Exception as e:
            log.warning("authz.profile_fetch_failed", subject=identity.subject, error=str(e))
            return UserProfile(full_name=DEFAULT_NAME, email=identity.email, initials="U")

        if row is None:
            return None
        full_name = row.full_name or DEFAULT_NAME
        return UserProfile(full_name=full_name, email=row.email, initials=initials_for(full_name))
