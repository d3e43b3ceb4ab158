"""
tradeflow_authz.policy_clients.authority

Contract of the remote policy/data authority.

Responsibilities:
- Name the five lookups the engine needs; implementations raise `PolicyFetchError`
  on any failure.
"""

from __future__ import annotations

from typing import Protocol

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.authz.models import Category
from tradeflow_authz.policy_clients.schemas import PermissionRow, ProfileRow


class PolicyAuthority(Protocol):
    async def fetch_role(self, identity: Identity) -> object:
        """Raw role value as stored server-side (may be None or outside the known roles)."""
        ...

    async def fetch_permissions(self, identity: Identity) -> list[PermissionRow]: ...

    async def fetch_active_categories(self) -> list[Category]: ...

    async def fetch_category_grants(self, identity: Identity) -> frozenset[str]: ...

    async def fetch_profile(self, identity: Identity) -> ProfileRow | None: ...


# --- Module Notes -----------------------------------------------------------
# Tests provide an in-memory implementation (see tests/conftest.py).
