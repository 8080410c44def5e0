from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Admin(db.Model):
    """
    Console administrator.

    Created once at startup from configuration (see auth_service.ensure_default_admin).
    Email is stored lower-cased so lookups are case-insensitive.
    """
    __tablename__ = "admins"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Admin id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "createdAt": to_utc_z(self.created_at),
        }


class User(db.Model):
    """
    End-customer account.

    The mobile number is the login handle and is unique across all users.
    This row is the single source of truth for account state; the four
    access flags are only mutated through account_service, which routes
    every change through lotdesk.account_state.AccountState.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    mobile = db.Column(db.String(20), nullable=False, unique=True, index=True)

    # Bcrypt hashed passkey (never serialized)
    passkey_hash = db.Column(db.String(255), nullable=False)

    subscription_paid = db.Column(db.Boolean, nullable=False, default=False)
    subscription_date = db.Column(db.DateTime(timezone=True), nullable=True)
    transaction_id = db.Column(db.String(120), nullable=False, default="")

    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    verification_date = db.Column(db.DateTime(timezone=True), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_logged_in = db.Column(db.Boolean, nullable=False, default=False)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_logout_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    verification_requests = db.relationship(
        "VerificationRequest",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} mobile={self.mobile!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "mobile": self.mobile,
            "subscriptionPaid": self.subscription_paid,
            "subscriptionDate": to_utc_z(self.subscription_date),
            "transactionId": self.transaction_id,
            "isVerified": self.is_verified,
            "verificationDate": to_utc_z(self.verification_date),
            "isActive": self.is_active,
            "isLoggedIn": self.is_logged_in,
            "lastLoginAt": to_utc_z(self.last_login_at),
            "lastLogoutAt": to_utc_z(self.last_logout_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_summary(self) -> dict:
        """Compact account view returned by the user-facing endpoints."""
        return {
            "id": self.id,
            "name": self.name,
            "mobile": self.mobile,
            "subscriptionPaid": self.subscription_paid,
            "isVerified": self.is_verified,
            "isActive": self.is_active,
            "isLoggedIn": self.is_logged_in,
        }
