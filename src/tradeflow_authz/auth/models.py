"""
tradeflow_authz.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Identity`) the engine resolves for.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Authenticated subject. Only `subject` takes part in cache keys and remote lookups.
    """

    subject: str
    email: str | None = None
    display_name: str | None = None


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it crosses the session, resolver and facade boundaries.
