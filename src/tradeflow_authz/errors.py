"""
tradeflow_authz.errors

Domain exceptions raised inside the engine.

Responsibilities:
- Give the policy client, session source and facade a shared error taxonomy.
"""

from __future__ import annotations


class AuthzError(Exception):
    pass


class PolicyFetchError(AuthzError):
    """
    The remote policy authority could not be reached, answered with an error status,
    or returned a payload that failed validation.
    """

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


class SessionTokenError(AuthzError):
    pass


class StaleIdentityError(AuthzError):
    """
    Raised when a caller asks for the authorization of an identity that is no longer
    the session's current identity.
    """


# --- Module Notes -----------------------------------------------------------
# Resolvers catch fetch failures and degrade to least privilege; only programming
# errors (stale identity, bad token) reach callers as exceptions.
