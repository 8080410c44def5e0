# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Credential hashing and admin authentication.

Admin passwords and user passkeys are both one-way hashed with bcrypt.
The cost factor comes from BCRYPT_ROUNDS (10 by default); tests lower it.
Hashes are never serialized: Admin.to_dict and User.to_dict omit them.
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import DuplicateKeyError, InvalidCredentialsError, StorageError, ValidationError
from ..extensions import db
from ..models import Admin

DEFAULT_BCRYPT_ROUNDS = 10


def _rounds() -> int:
    try:
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
    except RuntimeError:
        # Outside an application context (scripts, pure unit tests)
        return DEFAULT_BCRYPT_ROUNDS


def hash_password(password: str) -> str:
    """
    Hash a password or passkey using bcrypt.

    Returns the hash as a string for storage.
    """
    if not password:
        raise ValidationError("Password is required")
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_admin(admin_id: int) -> Admin | None:
    return db.session.get(Admin, admin_id)


def find_admin_by_email(email: str) -> Admin | None:
    return db.session.query(Admin).filter_by(email=normalize_email(email)).first()


def authenticate_admin(email: str, password: str) -> Admin:
    """
    Authenticate a console admin by email and password.

    Raises InvalidCredentialsError for an unknown email or a wrong password,
    without distinguishing the two.
    """
    admin = find_admin_by_email(email)
    if admin is None or not verify_password(password, admin.password_hash):
        raise InvalidCredentialsError("Invalid email or password")
    return admin


def create_admin(email: str, password: str) -> Admin:
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    admin = Admin(email=email, password_hash=hash_password(password))
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateKeyError("Admin with this email already exists")
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError() from e
    return admin


def ensure_default_admin(email: str | None, password: str | None) -> tuple[Admin | None, bool]:
    """
    Idempotent bootstrap: make sure an Admin with the configured email exists.

    Returns (admin, created). Does nothing when email or password is not
    configured. An existing admin's password is left untouched.
    """
    if not email or not password:
        return None, False

    existing = find_admin_by_email(email)
    if existing is not None:
        return existing, False

    return create_admin(email, password), True
