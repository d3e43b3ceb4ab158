"""
tradeflow_authz.authz

Authorization and scoped-visibility engine.

Responsibilities:
- Role, permission and category scope resolvers.
- The caching facade consumers query for decisions.
- Query filter builders and other projections of a resolved view.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# This is a client-side projection of server-side enforcement; it fails closed.
