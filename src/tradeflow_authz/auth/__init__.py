"""
tradeflow_authz.auth

Authentication package.

Responsibilities:
- Identity model and access-token decoding.
- Session source contract and a token-backed implementation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here decides what an identity may do; that is `tradeflow_authz.authz`.
