# Overview: Service-layer operations for user accounts; encapsulates business logic and database work.

"""
End-customer account lifecycle.

Every change to the four access flags goes through
lotdesk.account_state.AccountState; this module loads the state from the
User row, applies a named transition, writes it back and stamps the
matching timestamp.

CONCURRENCY:
- Single-session login flips is_logged_in with a conditional UPDATE
  (WHERE is_logged_in = false) so two near-simultaneous logins cannot both
  succeed.
- There are no locks; admin overrides are last-write-wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..account_state import AccountState
from ..errors import (
    AlreadyLoggedInError,
    DuplicateUserError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..extensions import db
from ..models import (
    User,
    VerificationRequest,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
)
from ..time_utils import utcnow
from . import auth_service, token_service

MAX_MOBILE_LENGTH = 20


@dataclass
class LoginResult:
    user: User
    token: str


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise DuplicateUserError() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError() from e


def normalize_mobile(mobile: str) -> str:
    value = (mobile or "").strip()
    if not value:
        raise ValidationError("Mobile number is required")
    if len(value) > MAX_MOBILE_LENGTH:
        raise ValidationError(f"mobile exceeds max length {MAX_MOBILE_LENGTH}")
    return value


def get_user(user_id: int) -> User | None:
    return db.session.get(User, user_id)


def require_user(user_id: int) -> User:
    user = get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def find_user_by_mobile(mobile: str) -> User | None:
    return db.session.query(User).filter_by(mobile=(mobile or "").strip()).first()


# =============================================================================
# SELF-SERVICE TRANSITIONS
# =============================================================================

def register(name: str, mobile: str, passkey: str) -> User:
    """
    Create a user in the initial state (active, logged out, unpaid, unverified).

    Raises DuplicateUserError if the mobile number is already registered.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    mobile = normalize_mobile(mobile)
    if not passkey:
        raise ValidationError("Passkey is required")

    if find_user_by_mobile(mobile) is not None:
        raise DuplicateUserError()

    user = User(
        name=name,
        mobile=mobile,
        passkey_hash=auth_service.hash_password(passkey),
        transaction_id="",
    )
    AccountState.initial().apply_to(user)

    db.session.add(user)
    # A concurrent registration that slipped past the lookup hits the unique index
    _commit()
    return user


def login(mobile: str, passkey: str, now: datetime | None = None) -> LoginResult:
    """
    Authenticate a user and start their session.

    Gate order: credentials, already-logged-in (when SINGLE_SESSION_LOGIN),
    active, paid, verified. On success sets is_logged_in, stamps
    last_login_at and issues a token.
    """
    user = find_user_by_mobile(mobile)
    if user is None or not auth_service.verify_password(passkey, user.passkey_hash):
        raise InvalidCredentialsError("Invalid mobile number or passkey")

    single_session = bool(current_app.config.get("SINGLE_SESSION_LOGIN", True))
    state = AccountState.from_user(user)
    state.check_login(single_session=single_session)

    now = now or utcnow()
    query = db.session.query(User).filter(User.id == user.id)
    if single_session:
        query = query.filter(User.is_logged_in.is_(False))
    updated = query.update(
        {User.is_logged_in: True, User.last_login_at: now, User.updated_at: now},
        synchronize_session=False,
    )
    if updated == 0:
        db.session.rollback()
        raise AlreadyLoggedInError()
    _commit()
    db.session.refresh(user)

    token = token_service.issue_token(token_service.KIND_USER, user.id, now=now)
    return LoginResult(user=user, token=token)


def logout(user_id: int, now: datetime | None = None) -> User:
    """Clear is_logged_in and stamp last_logout_at. Tokens stay valid until expiry."""
    user = require_user(user_id)
    now = now or utcnow()

    AccountState.from_user(user).logged_out().apply_to(user)
    user.last_logout_at = now
    _commit()
    return user


def force_logout(user_id: int, now: datetime | None = None) -> User:
    """Admin override of logout for any user."""
    return logout(user_id, now=now)


# =============================================================================
# ADMIN OVERRIDES
# =============================================================================

def set_active(user_id: int, active: bool, now: datetime | None = None) -> User:
    """Activate or deactivate. Deactivating also ends the session."""
    user = require_user(user_id)
    now = now or utcnow()
    state = AccountState.from_user(user)

    if active:
        state.activated().apply_to(user)
    else:
        state.deactivated().apply_to(user)
        user.last_logout_at = now

    _commit()
    return user


def set_logged_in(user_id: int, logged_in: bool, now: datetime | None = None) -> User:
    user = require_user(user_id)
    now = now or utcnow()
    state = AccountState.from_user(user)

    if logged_in:
        state.logged_in().apply_to(user)
        user.last_login_at = now
    else:
        state.logged_out().apply_to(user)
        user.last_logout_at = now

    _commit()
    return user


def update_status(
    user_id: int,
    *,
    is_active: bool | None = None,
    is_logged_in: bool | None = None,
    now: datetime | None = None,
) -> User:
    """Apply the status overrides provided (isActive first, then isLoggedIn)."""
    user = require_user(user_id)
    if is_active is not None:
        user = set_active(user_id, is_active, now=now)
    if is_logged_in is not None:
        user = set_logged_in(user_id, is_logged_in, now=now)
    return user


def set_subscription_paid(
    user_id: int,
    paid: bool,
    transaction_id: str | None = None,
    now: datetime | None = None,
) -> User:
    """
    paid=True stamps subscription_date and stores transaction_id when given.
    paid=False clears subscription_date and transaction_id.
    """
    user = require_user(user_id)
    now = now or utcnow()
    state = AccountState.from_user(user)

    if paid:
        state.paid().apply_to(user)
        user.subscription_date = now
        if transaction_id:
            user.transaction_id = transaction_id.strip()
    else:
        state.unpaid().apply_to(user)
        user.subscription_date = None
        user.transaction_id = ""

    _commit()
    return user


def set_verified(
    user_id: int,
    verified: bool,
    admin_id: int | None = None,
    now: datetime | None = None,
) -> User:
    """
    Direct verification override.

    Stamps or clears verification_date and resolves the user's pending
    request (if any) with a system remark, in the same transaction.
    """
    user = require_user(user_id)
    now = now or utcnow()
    state = AccountState.from_user(user)

    if verified:
        state.verified().apply_to(user)
        user.verification_date = now
    else:
        state.unverified().apply_to(user)
        user.verification_date = None

    pending = (
        db.session.query(VerificationRequest)
        .filter_by(user_id=user.id, status=REQUEST_STATUS_PENDING)
        .order_by(VerificationRequest.created_at.desc(), VerificationRequest.id.desc())
        .first()
    )
    if pending is not None:
        pending.status = REQUEST_STATUS_APPROVED if verified else REQUEST_STATUS_REJECTED
        pending.reviewed_by = admin_id
        pending.reviewed_at = now
        pending.remarks = "Manually verified by admin" if verified else "Manually rejected by admin"

    _commit()
    return user


def delete_user(user_id: int) -> dict:
    """
    Delete a user and all of their verification requests.

    Returns the summary of the deleted user.
    """
    user = require_user(user_id)
    deleted = {"id": user.id, "name": user.name, "mobile": user.mobile}

    db.session.query(VerificationRequest).filter_by(user_id=user.id).delete(synchronize_session=False)
    db.session.delete(user)
    _commit()
    return deleted


# =============================================================================
# DIRECTORY
# =============================================================================

def list_users(
    *,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    subscription_status: str | None = None,
    verification_status: str | None = None,
    login_status: str | None = None,
) -> dict:
    """
    Paginated user directory, newest first.

    Filters:
    - search: case-insensitive substring of name or mobile
    - subscription_status: paid | unpaid
    - verification_status: verified | unverified
    - login_status: online | offline
    Unknown filter values are ignored.
    """
    query = db.session.query(User)

    if search:
        text = search.strip()
        query = query.filter(
            or_(
                User.name.icontains(text, autoescape=True),
                User.mobile.icontains(text, autoescape=True),
            )
        )

    if subscription_status == "paid":
        query = query.filter(User.subscription_paid.is_(True))
    elif subscription_status == "unpaid":
        query = query.filter(User.subscription_paid.is_(False))

    if verification_status == "verified":
        query = query.filter(User.is_verified.is_(True))
    elif verification_status == "unverified":
        query = query.filter(User.is_verified.is_(False))

    if login_status == "online":
        query = query.filter(User.is_logged_in.is_(True))
    elif login_status == "offline":
        query = query.filter(User.is_logged_in.is_(False))

    page = max(page, 1)
    limit = max(limit, 1)

    total = query.count()
    total_pages = (total + limit - 1) // limit

    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "users": [u.to_dict() for u in users],
        "pagination": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalUsers": total,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        },
    }


def get_user_detail(user_id: int) -> dict:
    """User record plus their verification history, newest first."""
    user = require_user(user_id)
    history = (
        db.session.query(VerificationRequest)
        .filter_by(user_id=user.id)
        .order_by(VerificationRequest.created_at.desc(), VerificationRequest.id.desc())
        .all()
    )
    return {
        "user": user.to_dict(),
        "verificationHistory": [r.to_dict() for r in history],
    }
