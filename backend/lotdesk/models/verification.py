from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


REQUEST_STATUS_PENDING = "pending"
REQUEST_STATUS_APPROVED = "approved"
REQUEST_STATUS_REJECTED = "rejected"
REQUEST_STATUSES = (REQUEST_STATUS_PENDING, REQUEST_STATUS_APPROVED, REQUEST_STATUS_REJECTED)


class VerificationRequest(db.Model):
    """
    A user's self-reported subscription payment awaiting admin review.

    name/mobile/transaction_id are snapshots taken at submission time and
    are not kept in sync with the user row.

    At most one pending request per user: enforced by the workflow and by
    the partial unique index below.
    """
    __tablename__ = "verification_requests"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_verification_requests_status",
        ),
        db.Index("ix_verification_requests_status_created", "status", "created_at"),
        db.Index(
            "uq_verification_requests_user_pending",
            "user_id",
            unique=True,
            sqlite_where=db.text("status = 'pending'"),
            postgresql_where=db.text("status = 'pending'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(120), nullable=False)
    mobile = db.Column(db.String(20), nullable=False)
    transaction_id = db.Column(db.String(120), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=REQUEST_STATUS_PENDING)
    reviewed_by = db.Column(db.Integer, db.ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    remarks = db.Column(db.Text, nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    user = db.relationship("User", back_populates="verification_requests")
    reviewer = db.relationship("Admin", foreign_keys=[reviewed_by])

    def __repr__(self) -> str:
        return f"<VerificationRequest id={self.id} user_id={self.user_id} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "mobile": self.mobile,
            "transactionId": self.transaction_id,
            "status": self.status,
            "reviewedBy": self.reviewed_by,
            "reviewedAt": to_utc_z(self.reviewed_at),
            "remarks": self.remarks,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
