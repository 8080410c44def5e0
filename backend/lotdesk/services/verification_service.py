# Overview: Service-layer operations for payment verification; encapsulates business logic and database work.

"""
Payment attestation and admin adjudication.

A user (or an admin on their behalf) submits a self-reported transaction id.
That marks the subscription as paid and opens a pending VerificationRequest
carrying snapshots of the user's name and mobile. An admin then approves or
rejects the request, which sets the user's verified flag.

CONCURRENCY:
- submit_payment flips subscription_paid with a conditional UPDATE
  (WHERE subscription_paid = false); zero rows affected means AlreadyPaid.
  The request insert happens in the same transaction.
- adjudicate writes the request and the owning user in a single commit.
- A still-pending older request is resolved as rejected before a new one is
  opened, keeping at most one pending request per user.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..account_state import AccountState
from ..errors import (
    AlreadyPaidError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from ..extensions import db
from ..models import (
    User,
    VerificationRequest,
    REQUEST_STATUSES,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
)
from ..time_utils import utcnow
from .principal import Principal

SUPERSEDED_REMARK = "Superseded by a newer payment submission"
MAX_TRANSACTION_ID_LENGTH = 120


@dataclass
class PaymentSubmission:
    request: VerificationRequest
    user: User


def _require_self_or_admin(user_id: int, caller: Principal) -> None:
    if caller.is_admin:
        return
    if caller.is_user and caller.id == user_id:
        return
    raise ForbiddenError("Not authorized to access this user's verification")


def submit_payment(
    user_id: int,
    transaction_id: str,
    caller: Principal,
    now: datetime | None = None,
) -> PaymentSubmission:
    """
    Record a self-reported payment and open a pending verification request.

    Raises:
        ForbiddenError: caller is a user other than user_id
        NotFoundError: user does not exist
        AlreadyPaidError: subscription already marked paid
    """
    _require_self_or_admin(user_id, caller)

    transaction_id = (transaction_id or "").strip()
    if not transaction_id:
        raise ValidationError("Transaction ID is required")
    if len(transaction_id) > MAX_TRANSACTION_ID_LENGTH:
        raise ValidationError(f"transactionId exceeds max length {MAX_TRANSACTION_ID_LENGTH}")

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.subscription_paid:
        raise AlreadyPaidError()

    now = now or utcnow()

    try:
        updated = (
            db.session.query(User)
            .filter(User.id == user_id, User.subscription_paid.is_(False))
            .update(
                {
                    User.subscription_paid: True,
                    User.subscription_date: now,
                    User.transaction_id: transaction_id,
                    User.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            db.session.rollback()
            raise AlreadyPaidError()

        stale = (
            db.session.query(VerificationRequest)
            .filter_by(user_id=user_id, status=REQUEST_STATUS_PENDING)
            .all()
        )
        for old in stale:
            old.status = REQUEST_STATUS_REJECTED
            old.reviewed_at = now
            old.remarks = SUPERSEDED_REMARK
        if stale:
            db.session.flush()

        request = VerificationRequest(
            user_id=user_id,
            name=user.name,
            mobile=user.mobile,
            transaction_id=transaction_id,
            status=REQUEST_STATUS_PENDING,
            remarks="",
            created_at=now,
            updated_at=now,
        )
        db.session.add(request)
        db.session.commit()
    except IntegrityError as e:
        # Lost a race on the pending-request index
        db.session.rollback()
        raise AlreadyPaidError() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError() from e

    db.session.refresh(user)
    return PaymentSubmission(request=request, user=user)


def latest_pending_request(user_id: int) -> VerificationRequest | None:
    return (
        db.session.query(VerificationRequest)
        .filter_by(user_id=user_id, status=REQUEST_STATUS_PENDING)
        .order_by(VerificationRequest.created_at.desc(), VerificationRequest.id.desc())
        .first()
    )


def check_status(user_id: int, caller: Principal) -> dict:
    """User summary plus their newest pending request (or None)."""
    _require_self_or_admin(user_id, caller)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    pending = latest_pending_request(user_id)
    return {
        "user": user.to_dict(),
        "pendingRequest": pending.to_dict() if pending else None,
    }


def list_requests(status: str | None = None, search: str | None = None) -> list[dict]:
    """
    All verification requests, newest first.

    status: pending | approved | rejected; None or "all" lists everything.
    Each row carries the owning user's current flags for display.
    """
    query = db.session.query(VerificationRequest)

    if status and status != "all":
        if status not in REQUEST_STATUSES:
            raise ValidationError(f"status must be one of: all, {', '.join(REQUEST_STATUSES)}")
        query = query.filter(VerificationRequest.status == status)

    if search:
        text = search.strip()
        query = query.filter(
            or_(
                VerificationRequest.name.icontains(text, autoescape=True),
                VerificationRequest.mobile.icontains(text, autoescape=True),
                VerificationRequest.transaction_id.icontains(text, autoescape=True),
            )
        )

    rows = query.order_by(VerificationRequest.created_at.desc(), VerificationRequest.id.desc()).all()

    result = []
    for r in rows:
        item = r.to_dict()
        item["user"] = r.user.to_summary() if r.user is not None else None
        result.append(item)
    return result


def get_request(request_id: int) -> VerificationRequest:
    request = db.session.get(VerificationRequest, request_id)
    if request is None:
        raise NotFoundError("Verification request not found")
    return request


def adjudicate(
    request_id: int,
    status: str,
    remarks: str | None,
    admin_id: int,
    now: datetime | None = None,
) -> VerificationRequest:
    """
    Approve or reject a verification request.

    Only pending requests can be decided. Sets status, reviewer, review time
    and remarks on the request, then sets the owning user's verified flag (if
    the user still exists). Both writes are committed together.
    """
    if status not in (REQUEST_STATUS_APPROVED, REQUEST_STATUS_REJECTED):
        raise ValidationError("status must be 'approved' or 'rejected'")

    request = get_request(request_id)
    if request.status != REQUEST_STATUS_PENDING:
        raise ValidationError(f"Verification request is already {request.status}")
    now = now or utcnow()

    request.status = status
    request.reviewed_by = admin_id
    request.reviewed_at = now
    request.remarks = (remarks or "").strip()

    user = db.session.get(User, request.user_id)
    if user is not None:
        state = AccountState.from_user(user)
        if status == REQUEST_STATUS_APPROVED:
            state.verified().apply_to(user)
            user.verification_date = now
        else:
            state.unverified().apply_to(user)
            user.verification_date = None

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError() from e

    return request
