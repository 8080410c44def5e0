# Overview: Resolve a bearer token into the calling admin or user.

"""
Caller identity for a request.

A Principal is a tagged union: kind is "admin" or "user", record is the
matching row. It is resolved once per request from the token's kind claim,
so the guard never has to guess which table an id belongs to.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..errors import UnauthenticatedError
from ..extensions import db
from ..models import Admin, User
from . import token_service
from .token_service import KIND_ADMIN, KIND_USER


@dataclass(frozen=True)
class Principal:
    kind: str
    id: int
    record: Admin | User

    @property
    def is_admin(self) -> bool:
        return self.kind == KIND_ADMIN

    @property
    def is_user(self) -> bool:
        return self.kind == KIND_USER

    @property
    def admin(self) -> Admin | None:
        return self.record if self.is_admin else None

    @property
    def user(self) -> User | None:
        return self.record if self.is_user else None

    def to_dict(self) -> dict:
        return {"role": self.kind, **self.record.to_dict()}

    @classmethod
    def for_admin(cls, admin: Admin) -> "Principal":
        return cls(kind=KIND_ADMIN, id=admin.id, record=admin)

    @classmethod
    def for_user(cls, user: User) -> "Principal":
        return cls(kind=KIND_USER, id=user.id, record=user)


def extract_bearer_token(auth_header: str | None) -> str:
    """Token from an 'Authorization: Bearer <token>' header."""
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthenticatedError("Not authorized, no token")
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise UnauthenticatedError("Not authorized, no token")
    return token


def resolve_principal(token: str, now: datetime | None = None) -> Principal:
    """
    Verify the token and load the identity it names.

    Raises UnauthenticatedError when the token is invalid or expired, or
    when the admin/user it names no longer exists.
    """
    claims = token_service.verify_token(token, now=now)

    if claims.kind == KIND_ADMIN:
        admin = db.session.get(Admin, claims.identity_id)
        if admin is None:
            raise UnauthenticatedError("Not authorized")
        return Principal.for_admin(admin)

    user = db.session.get(User, claims.identity_id)
    if user is None:
        raise UnauthenticatedError("Not authorized")
    return Principal.for_user(user)
