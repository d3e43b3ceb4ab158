"""
tests.test_bootstrap

End-to-end wiring: settings -> HTTP client -> resolvers -> facade, against a mocked
backend; plus the operator CLI's error path.
"""

from __future__ import annotations

import httpx
import pytest

from tradeflow_authz.__main__ import main
from tradeflow_authz.auth.jwt import JwtConfig, issue_token
from tradeflow_authz.authz.models import Module, Role
from tradeflow_authz.bootstrap import create_engine
from tradeflow_authz.settings import EmptyGrantsPolicy, Settings

SETTINGS = Settings(
    env="test",
    jwt_secret="e2e-secret",
    policy_api_key="anon-key",
    log_level="WARNING",
)

CATEGORIES = [
    {"id": "cat-eqp", "name": "Equipment"},
    {"id": "cat-gen", "name": "Generators"},
    {"id": "cat-trc", "name": "Tractors"},
]


def _backend(*, role: str, grants: list[str], fail_permissions: bool = False):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/rest/v1/rpc/get_current_user_role":
            return httpx.Response(200, json=role)
        if path == "/rest/v1/rpc/get_user_permissions":
            if fail_permissions:
                return httpx.Response(500, json={"message": "boom"})
            return httpx.Response(
                200,
                json=[
                    {"module": "customers", "action": "view"},
                    {"module": "customers", "action": "create"},
                ],
            )
        if path == "/rest/v1/product_categories":
            return httpx.Response(200, json=CATEGORIES)
        if path == "/rest/v1/user_categories":
            return httpx.Response(200, json=[{"category_id": g} for g in grants])
        if path == "/rest/v1/profiles":
            return httpx.Response(200, json=[{"full_name": "Rami Fares", "email": None}])
        return httpx.Response(404)

    return handler


def _token(subject: str, settings: Settings = SETTINGS) -> str:
    return issue_token(cfg=JwtConfig.from_settings(settings), subject=subject)


@pytest.mark.asyncio
async def test_engine_resolves_restricted_sales_user() -> None:
    transport = httpx.MockTransport(_backend(role="sales_staff", grants=["cat-gen"]))
    async with httpx.AsyncClient(transport=transport, base_url="http://policy.test") as http:
        engine = create_engine(settings=SETTINGS, http=http)
        identity = engine.session.sign_in(_token("user-rami"))
        await engine.facade.start()

        view = await engine.facade.get_authorization()
        profile = await engine.profiles.resolve(identity)
        engine.facade.close()

    assert view.role is Role.sales_staff
    assert view.can_create(Module.customers)
    assert view.scope.restricted is True
    assert view.filter_ids_for_query() == {"cat-gen"}
    assert not view.can_access_category("cat-trc")
    assert profile is not None and profile.initials == "RF"


@pytest.mark.asyncio
async def test_engine_degrades_on_permission_outage() -> None:
    transport = httpx.MockTransport(
        _backend(role="inventory_staff", grants=[], fail_permissions=True)
    )
    async with httpx.AsyncClient(transport=transport, base_url="http://policy.test") as http:
        engine = create_engine(settings=SETTINGS, http=http)
        engine.session.sign_in(_token("user-lina"))
        view = await engine.facade.start()

    assert view is not None
    assert view.degraded == {"permissions"}
    assert not view.can_create(Module.customers)
    assert view.scope.restricted is False


@pytest.mark.asyncio
async def test_engine_honors_deny_all_policy() -> None:
    settings = SETTINGS.model_copy(update={"empty_grants_policy": EmptyGrantsPolicy.deny_all})
    transport = httpx.MockTransport(_backend(role="accountant", grants=[]))
    async with httpx.AsyncClient(transport=transport, base_url="http://policy.test") as http:
        engine = create_engine(settings=settings, http=http)
        engine.session.sign_in(_token("user-hadi", settings))
        view = await engine.facade.start()

    assert view is not None
    assert view.scope.restricted is True
    assert view.filter_ids_for_query() == frozenset()


def test_cli_rejects_invalid_token(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--token", "not-a-jwt"]) == 1
    assert "invalid access token" in capsys.readouterr().err


def test_cli_requires_a_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TRADEFLOW_ACCESS_TOKEN", raising=False)

    with pytest.raises(SystemExit):
        main([])
