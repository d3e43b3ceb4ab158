"""
tradeflow_authz.auth.session

Session source contract and a token-backed implementation.

Responsibilities:
- Define what the engine consumes from the authentication layer
  (`current_identity`, `access_token`, `subscribe`).
- Emit typed session-change events on sign-in, token refresh, identity switch and sign-out.
- Hand out disposers instead of relying on an implicit global event bus.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from tradeflow_authz.auth.jwt import JwtConfig, decode_and_validate, identity_from_claims
from tradeflow_authz.auth.models import Identity
from tradeflow_authz.observability.logging import get_logger

log = get_logger(__name__)


class SessionEventKind(enum.StrEnum):
    signed_in = "SIGNED_IN"
    token_refreshed = "TOKEN_REFRESHED"
    identity_switched = "IDENTITY_SWITCHED"
    signed_out = "SIGNED_OUT"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    kind: SessionEventKind
    # Identity after the change; None once signed out.
    identity: Identity | None


SessionListener = Callable[[SessionEvent], None]
Unsubscribe = Callable[[], None]


class SessionSource(Protocol):
    def current_identity(self) -> Identity | None: ...

    def access_token(self) -> str | None: ...

    def subscribe(self, listener: SessionListener) -> Unsubscribe: ...


class TokenSessionSource:
    """
    Session source backed by a bearer access token.

    The auth layer calls `sign_in`/`refresh`/`sign_out`; listeners are notified
    synchronously, in subscription order.
    """

    def __init__(self, *, jwt_cfg: JwtConfig) -> None:
        self._jwt_cfg = jwt_cfg
        self._token: str | None = None
        self._identity: Identity | None = None
        self._listeners: list[SessionListener] = []

    def current_identity(self) -> Identity | None:
        return self._identity

    def access_token(self) -> str | None:
        return self._token

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, token: str) -> Identity:
        return self._change(token, SessionEventKind.signed_in)

    def refresh(self, token: str) -> Identity:
        return self._change(token, SessionEventKind.token_refreshed)

    def sign_out(self) -> None:
        self._token = None
        self._identity = None
        self._emit(SessionEvent(kind=SessionEventKind.signed_out, identity=None))

    def _change(self, token: str, kind: SessionEventKind) -> Identity:
        previous = self._identity
        identity = self._accept(token)
        if previous is not None and previous.subject != identity.subject:
            kind = SessionEventKind.identity_switched
        self._emit(SessionEvent(kind=kind, identity=identity))
        return identity

    def _accept(self, token: str) -> Identity:
        # Validate before touching state: a bad token must not clear a good session.
        claims = decode_and_validate(cfg=self._jwt_cfg, token=token)
        identity = identity_from_claims(claims)
        self._token = token
        self._identity = identity
        return identity

    def _emit(self, event: SessionEvent) -> None:
        log.info(
            "session.changed",
            kind=str(event.kind),
            subject=event.identity.subject if event.identity else None,
        )
        # Copy: listeners may unsubscribe while being notified.
        for listener in list(self._listeners):
            listener(event)


# --- Module Notes -----------------------------------------------------------
# The authorization facade is the main listener; it invalidates its cache on every
# event kind, including plain token refreshes.
