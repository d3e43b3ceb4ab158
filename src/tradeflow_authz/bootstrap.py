"""
tradeflow_authz.bootstrap

Composition root for the authorization engine.

Responsibilities:
- Configure structured logging once.
- Build the HTTP client, policy client, resolvers and facade from settings.
- Keep wiring in one place; decision logic stays in `tradeflow_authz.authz`.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from tradeflow_authz.auth.jwt import JwtConfig
from tradeflow_authz.auth.session import TokenSessionSource
from tradeflow_authz.authz.facade import AuthorizationFacade
from tradeflow_authz.authz.permissions import PermissionResolver
from tradeflow_authz.authz.profile import ProfileResolver
from tradeflow_authz.authz.roles import RoleResolver
from tradeflow_authz.authz.scope import CategoryScopeResolver
from tradeflow_authz.observability.logging import configure_logging, get_logger
from tradeflow_authz.policy_clients.http import PolicyApiClient
from tradeflow_authz.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AuthorizationEngine:
    session: TokenSessionSource
    facade: AuthorizationFacade
    profiles: ProfileResolver


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    # The transport's timeout is the only timeout applied to resolution.
    return httpx.AsyncClient(
        base_url=settings.policy_api_base_url,
        timeout=httpx.Timeout(settings.policy_api_timeout_seconds),
    )


def create_engine(
    *,
    settings: Settings,
    http: httpx.AsyncClient,
    session: TokenSessionSource | None = None,
) -> AuthorizationEngine:
    configure_logging(service_name=settings.service_name, level=settings.log_level, env=settings.env)

    session = session or TokenSessionSource(jwt_cfg=JwtConfig.from_settings(settings))
    client = PolicyApiClient(
        http=http,
        api_key=settings.policy_api_key,
        token_provider=session.access_token,
    )
    facade = AuthorizationFacade(
        session=session,
        roles=RoleResolver(authority=client),
        permissions=PermissionResolver(authority=client),
        scopes=CategoryScopeResolver(
            authority=client,
            empty_grants_policy=settings.empty_grants_policy,
        ),
    )
    log.info(
        "engine.created",
        env=settings.env,
        empty_grants_policy=str(settings.empty_grants_policy),
    )
    return AuthorizationEngine(
        session=session,
        facade=facade,
        profiles=ProfileResolver(authority=client),
    )


# --- Module Notes -----------------------------------------------------------
# Callers own the `httpx.AsyncClient` lifetime (`async with create_http_client(...)`).
