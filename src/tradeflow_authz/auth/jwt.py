"""
tradeflow_authz.auth.jwt

JWT issuing and validation helpers for session access tokens.

Responsibilities:
- Decode and validate access tokens with strict claim requirements (aud/exp/iat/sub).
- Convert validated claims into an `Identity`.
- Issue tokens for local/dev scenarios and tests.

Note:
- Hosted auth providers may sign with RS256 + JWKS; this package uses HS256 for simplicity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from tradeflow_authz.auth.models import Identity
from tradeflow_authz.errors import SessionTokenError
from tradeflow_authz.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    audience: str
    secret: str
    issuer: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
        )


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    email: str | None = None,
    full_name: str | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "aud": cfg.audience,
        "sub": subject,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if cfg.issuer:
        payload["iss"] = cfg.issuer
    if email:
        payload["email"] = email
    if full_name:
        payload["user_metadata"] = {"full_name": full_name}
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    required = ["exp", "iat", "aud", "sub"]
    if cfg.issuer:
        required.append("iss")
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            audience=cfg.audience,
            issuer=cfg.issuer,
            options={"require": required},
        )
    except InvalidTokenError as e:
        raise SessionTokenError(str(e)) from e


def identity_from_claims(claims: dict[str, Any]) -> Identity:
    subject = str(claims.get("sub", "")).strip()
    if not subject:
        raise SessionTokenError("Invalid token subject")

    metadata = claims.get("user_metadata")
    display_name = None
    if isinstance(metadata, dict) and metadata.get("full_name"):
        display_name = str(metadata["full_name"])

    email = claims.get("email")
    return Identity(
        subject=subject,
        email=str(email) if email else None,
        display_name=display_name,
    )


# --- Module Notes -----------------------------------------------------------
# Token decoding is used by:
# - `auth/session.py` (sign-in / refresh)
# - `__main__.py` (operator diagnostics)
