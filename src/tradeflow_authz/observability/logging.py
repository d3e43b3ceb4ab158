"""
tradeflow_authz.observability.logging

JSON log setup for the authorization engine.

Responsibilities:
- Route structlog events through stdlib logging to stderr (stdout belongs to the CLI).
- Stamp every line with the service name and deployment environment.
- Mask session credentials that end up in event fields.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Event fields that may carry a bearer token or the project API key.
CREDENTIAL_FIELDS = frozenset({"access_token", "apikey", "api_key", "authorization", "token"})
REDACTED = "[redacted]"


def configure_logging(*, service_name: str, level: str, env: str = "local") -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _stamp_deployment(service_name, env),
            redact_credentials,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _stamp_deployment(service_name: str, env: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("env", env)
        return event_dict

    return processor


def redact_credentials(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in CREDENTIAL_FIELDS.intersection(event_dict):
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# The facade binds `authz_generation` into each resolution cycle's context, so lines
# from one cycle (including discarded ones) can be grouped.
