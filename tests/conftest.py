"""
tests.conftest

Shared fixtures for engine tests.

Responsibilities:
- Provide an in-memory policy authority with switchable failures and gates.
- Provide a token-backed session source and token minting helper.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from tradeflow_authz.auth.jwt import JwtConfig, issue_token
from tradeflow_authz.auth.models import Identity
from tradeflow_authz.auth.session import TokenSessionSource
from tradeflow_authz.authz.facade import AuthorizationFacade
from tradeflow_authz.authz.models import Category
from tradeflow_authz.authz.permissions import PermissionResolver
from tradeflow_authz.authz.roles import RoleResolver
from tradeflow_authz.authz.scope import CategoryScopeResolver
from tradeflow_authz.errors import PolicyFetchError
from tradeflow_authz.policy_clients.schemas import PermissionRow, ProfileRow

GENERATORS = Category(id="cat-gen", name="Generators")
TRACTORS = Category(id="cat-trc", name="Tractors")
EQUIPMENT = Category(id="cat-eqp", name="Equipment")

JWT_CFG = JwtConfig(alg="HS256", audience="authenticated", secret="test-secret")


class FakeAuthority:
    """
    In-memory `PolicyAuthority`.

    - `fail`: operation names that raise `PolicyFetchError`.
    - `gates`: operation names that block until the event is set.
    """

    def __init__(self) -> None:
        self.roles: dict[str, object] = {}
        self.permissions: dict[str, list[tuple[str, str]]] = {}
        self.categories: list[Category] = sorted(
            [GENERATORS, TRACTORS, EQUIPMENT], key=lambda c: c.name
        )
        self.grants: dict[str, set[str]] = {}
        self.profiles: dict[str, ProfileRow] = {}
        self.fail: set[str] = set()
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, str | None]] = []

    async def _enter(self, operation: str, subject: str | None) -> None:
        self.calls.append((operation, subject))
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        if operation in self.fail:
            raise PolicyFetchError(operation, "ConnectError: connection refused")

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)

    async def fetch_role(self, identity: Identity) -> object:
        await self._enter("fetch_role", identity.subject)
        return self.roles.get(identity.subject)

    async def fetch_permissions(self, identity: Identity) -> list[PermissionRow]:
        await self._enter("fetch_permissions", identity.subject)
        return [
            PermissionRow(module=m, action=a)
            for m, a in self.permissions.get(identity.subject, [])
        ]

    async def fetch_active_categories(self) -> list[Category]:
        await self._enter("fetch_active_categories", None)
        return list(self.categories)

    async def fetch_category_grants(self, identity: Identity) -> frozenset[str]:
        await self._enter("fetch_category_grants", identity.subject)
        return frozenset(self.grants.get(identity.subject, set()))

    async def fetch_profile(self, identity: Identity) -> ProfileRow | None:
        await self._enter("fetch_profile", identity.subject)
        return self.profiles.get(identity.subject)


@pytest.fixture
def authority() -> FakeAuthority:
    return FakeAuthority()


@pytest.fixture
def session() -> TokenSessionSource:
    return TokenSessionSource(jwt_cfg=JWT_CFG)


@pytest.fixture
def token_for() -> Callable[..., str]:
    def _mint(subject: str, email: str | None = None, full_name: str | None = None) -> str:
        return issue_token(cfg=JWT_CFG, subject=subject, email=email, full_name=full_name)

    return _mint


@pytest.fixture
def facade(authority: FakeAuthority, session: TokenSessionSource) -> AuthorizationFacade:
    return AuthorizationFacade(
        session=session,
        roles=RoleResolver(authority=authority),
        permissions=PermissionResolver(authority=authority),
        scopes=CategoryScopeResolver(authority=authority),
    )


# --- Module Notes -----------------------------------------------------------
# Fixtures are synchronous; async tests use `@pytest.mark.asyncio` explicitly.
