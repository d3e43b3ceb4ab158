"""
tradeflow_authz.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the engine and its clients.
- Hide secrets from repr/logging (API key, JWT secret).
- Hold the auditable policy switch for accounts without category grants.
- Offer a cached settings instance for composition.
"""

from __future__ import annotations

import enum
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmptyGrantsPolicy(enum.StrEnum):
    # What a non-admin account with zero category grants may see.
    # UNRESTRICTED is the historical behavior of ungated accounts.
    unrestricted = "UNRESTRICTED"
    deny_all = "DENY_ALL"


class Settings(BaseSettings):
    """
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="TRADEFLOW_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "tradeflow-authz"
    log_level: str = "INFO"

    # Remote policy/data authority (PostgREST-style API)
    policy_api_base_url: str = "http://localhost:54321"
    policy_api_key: str = Field(default="dev-anon-key", repr=False)
    policy_api_timeout_seconds: float = 10.0

    # Session access tokens
    jwt_alg: str = "HS256"
    jwt_audience: str = "authenticated"
    jwt_issuer: str | None = None
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Category visibility
    empty_grants_policy: EmptyGrantsPolicy = EmptyGrantsPolicy.unrestricted


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Flipping `empty_grants_policy` to DENY_ALL changes what ungated staff can see;
# coordinate with the server-side row policies before doing so.
