# Overview: Service-layer operations for bearer tokens; issue and verify signed credentials.

"""
Signed bearer tokens (JWT, HS256 by default).

A token binds an identity (kind + id) to an absolute expiry TOKEN_TTL_DAYS
(30) after issuance. Tokens are not stored and cannot be revoked: logout
only flips User.is_logged_in, the token stays valid until it expires.

Claims:
- sub:  identity id (string, per RFC 7519)
- kind: "admin" or "user" (admins and users have separate id spaces)
- iat / exp: epoch seconds

Expiry is checked against an injectable clock so callers and tests can
evaluate a token at any instant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from flask import current_app

from ..errors import UnauthenticatedError
from ..time_utils import to_epoch, utcnow

KIND_ADMIN = "admin"
KIND_USER = "user"
TOKEN_KINDS = (KIND_ADMIN, KIND_USER)

DEFAULT_TOKEN_TTL = timedelta(days=30)


class InvalidTokenError(UnauthenticatedError):
    """Token signature mismatch, malformed payload or expired."""
    default_message = "Not authorized, token failed"


@dataclass(frozen=True)
class TokenClaims:
    kind: str
    identity_id: int
    issued_at: int
    expires_at: int


def _secret() -> str:
    return current_app.config.get("JWT_SECRET") or current_app.config["SECRET_KEY"]


def _algorithm() -> str:
    return current_app.config.get("JWT_ALGORITHM", "HS256")


def _ttl() -> timedelta:
    days = current_app.config.get("TOKEN_TTL_DAYS")
    return timedelta(days=int(days)) if days else DEFAULT_TOKEN_TTL


def issue_token(kind: str, identity_id: int, now: datetime | None = None) -> str:
    """Issue a signed token for an admin or user id."""
    if kind not in TOKEN_KINDS:
        raise ValueError(f"Unknown identity kind: {kind}")

    issued = now or utcnow()
    payload = {
        "sub": str(identity_id),
        "kind": kind,
        "iat": to_epoch(issued),
        "exp": to_epoch(issued + _ttl()),
    }
    return jwt.encode(payload, _secret(), algorithm=_algorithm())


def verify_token(token: str, now: datetime | None = None) -> TokenClaims:
    """
    Verify signature, shape and expiry of a presented token.

    Raises InvalidTokenError on any failure.
    """
    if not token or not isinstance(token, str):
        raise InvalidTokenError()

    try:
        # Expiry is checked below against the supplied clock
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[_algorithm()],
            options={"require": ["sub", "exp"], "verify_exp": False, "verify_iat": False},
        )
    except jwt.InvalidTokenError:
        raise InvalidTokenError()

    kind = payload.get("kind")
    if kind not in TOKEN_KINDS:
        raise InvalidTokenError()

    try:
        identity_id = int(payload["sub"])
        expires_at = int(payload["exp"])
        issued_at = int(payload.get("iat", 0))
    except (TypeError, ValueError):
        raise InvalidTokenError()

    current = to_epoch(now or utcnow())
    if expires_at <= current:
        raise InvalidTokenError("Not authorized, token expired")

    return TokenClaims(kind=kind, identity_id=identity_id, issued_at=issued_at, expires_at=expires_at)
