# Overview: Service-layer operations for the console dashboard; aggregates counts for display.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import (
    Product,
    User,
    VerificationRequest,
    REQUEST_STATUSES,
    REQUEST_STATUS_APPROVED,
)

RECENT_REQUEST_LIMIT = 5


def dashboard_summary(subscription_fee: int) -> dict:
    """
    Headline numbers for the admin console.

    Revenue is estimated as approved verifications times the subscription fee.
    """
    status_counts = dict(
        db.session.query(VerificationRequest.status, func.count(VerificationRequest.id))
        .group_by(VerificationRequest.status)
        .all()
    )
    by_status = {status: int(status_counts.get(status, 0)) for status in REQUEST_STATUSES}

    recent = (
        db.session.query(VerificationRequest)
        .order_by(VerificationRequest.created_at.desc(), VerificationRequest.id.desc())
        .limit(RECENT_REQUEST_LIMIT)
        .all()
    )

    return {
        "totalProducts": db.session.query(Product).count(),
        "pendingVerifications": by_status["pending"],
        "approvedVerifications": by_status["approved"],
        "rejectedVerifications": by_status["rejected"],
        "totalRevenue": by_status[REQUEST_STATUS_APPROVED] * subscription_fee,
        "totalUsers": db.session.query(User).count(),
        "activeUsers": db.session.query(User).filter(
            User.is_active.is_(True),
            User.subscription_paid.is_(True),
            User.is_verified.is_(True),
        ).count(),
        "onlineUsers": db.session.query(User).filter(User.is_logged_in.is_(True)).count(),
        "recentRequests": [r.to_dict() for r in recent],
    }
