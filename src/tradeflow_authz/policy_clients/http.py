"""
tradeflow_authz.policy_clients.http

HTTP client boundary used by the resolvers to call the remote policy authority.

Responsibilities:
- Attach the project API key and the session's bearer token to every call.
- Call the PostgREST-style RPC and table endpoints under `/rest/v1/*`.
- Validate payloads and translate every failure into `PolicyFetchError`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.authz.models import Category
from tradeflow_authz.errors import PolicyFetchError
from tradeflow_authz.policy_clients.schemas import (
    CategoryGrantRow,
    CategoryRow,
    PermissionRow,
    ProfileRow,
)

_permission_rows = TypeAdapter(list[PermissionRow])
_category_rows = TypeAdapter(list[CategoryRow])
_grant_rows = TypeAdapter(list[CategoryGrantRow])
_profile_rows = TypeAdapter(list[ProfileRow])


class PolicyApiClient:
    """
    The engine talks to the backend only through this client.

    The bearer token is read from `token_provider` on each call, so a refreshed
    session token is picked up without rebuilding the client.
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        api_key: str,
        token_provider: Callable[[], str | None],
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._token_provider = token_provider

    def _headers(self) -> dict[str, str]:
        # Without a session token the backend evaluates row policies as the anon role.
        token = self._token_provider() or self._api_key
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            r = await self._http.request(
                method, path, params=params, json=json, headers=self._headers()
            )
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as e:
            raise PolicyFetchError(operation, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise PolicyFetchError(operation, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            # Body was not JSON.
            raise PolicyFetchError(operation, "invalid JSON body") from e

    async def fetch_role(self, identity: Identity) -> object:
        # The RPC answers for the bearer of the token, which is `identity`.
        return await self._request(
            "fetch_role", "POST", "/rest/v1/rpc/get_current_user_role", json={}
        )

    async def fetch_permissions(self, identity: Identity) -> list[PermissionRow]:
        data = await self._request(
            "fetch_permissions",
            "POST",
            "/rest/v1/rpc/get_user_permissions",
            json={"_user_id": identity.subject},
        )
        return _validate("fetch_permissions", _permission_rows, data or [])

    async def fetch_active_categories(self) -> list[Category]:
        data = await self._request(
            "fetch_active_categories",
            "GET",
            "/rest/v1/product_categories",
            params={"select": "id,name", "is_active": "eq.true", "order": "name.asc"},
        )
        rows = _validate("fetch_active_categories", _category_rows, data or [])
        return [Category(id=row.id, name=row.name) for row in rows]

    async def fetch_category_grants(self, identity: Identity) -> frozenset[str]:
        data = await self._request(
            "fetch_category_grants",
            "GET",
            "/rest/v1/user_categories",
            params={"select": "category_id", "user_id": f"eq.{identity.subject}"},
        )
        rows = _validate("fetch_category_grants", _grant_rows, data or [])
        return frozenset(row.category_id for row in rows)

    async def fetch_profile(self, identity: Identity) -> ProfileRow | None:
        data = await self._request(
            "fetch_profile",
            "GET",
            "/rest/v1/profiles",
            params={"select": "full_name,email", "user_id": f"eq.{identity.subject}"},
        )
        rows = _validate("fetch_profile", _profile_rows, data or [])
        return rows[0] if rows else None


def _validate(operation: str, adapter: TypeAdapter, data: Any) -> Any:
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        raise PolicyFetchError(operation, f"unexpected payload ({e.error_count()} errors)") from e


# --- Module Notes -----------------------------------------------------------
# Timeouts and retries belong to the `httpx.AsyncClient` handed in by the composition
# root (see `tradeflow_authz.bootstrap`); the engine imposes none of its own.
