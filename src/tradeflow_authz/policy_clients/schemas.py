"""
tradeflow_authz.policy_clients.schemas

Wire models for policy authority payloads.

Responsibilities:
- Validate rows returned by the backend before they reach any decision code.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PermissionRow(BaseModel):
    # Kept as plain strings: unknown modules/actions are dropped by the resolver, not here.
    module: str
    action: str


class CategoryRow(BaseModel):
    id: str = Field(min_length=1)
    name: str


class CategoryGrantRow(BaseModel):
    category_id: str = Field(min_length=1)


class ProfileRow(BaseModel):
    full_name: str | None = None
    email: str | None = None


# --- Module Notes -----------------------------------------------------------
# Extra columns are ignored (pydantic default), so backend schema additions are safe.
