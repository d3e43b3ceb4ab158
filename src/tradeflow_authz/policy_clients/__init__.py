"""
tradeflow_authz.policy_clients

Policy authority client package.

Responsibilities:
- Define the contract the resolvers consume from the remote policy/data authority.
- Provide the HTTP implementation against the PostgREST-style backend.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Resolvers depend on `PolicyAuthority` (the protocol), never on HTTP details.
