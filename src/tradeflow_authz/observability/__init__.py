"""
tradeflow_authz.observability

Observability package.

Responsibilities:
- Structured logging configuration.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Operators read authorization fallbacks from these logs; the engine never raises them.
