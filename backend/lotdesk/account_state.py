# Overview: Account lifecycle flags as an immutable value with named transitions.

"""
Account state for end-customer users.

A user's access is the product of four independent flags:
active, logged in, subscription paid and verified. Transitions are named
functions returning a new AccountState so the allowed moves can be tested
without Flask or a database. Timestamps are stamped by account_service,
which is the only writer of these flags on the User row.

Gate ordering is part of the API contract:
- login:  already-logged-in -> active -> paid -> verified
- access: active -> paid -> verified
Each gate short-circuits with its own error before the next is evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .errors import (
    AccountDeactivatedError,
    AlreadyLoggedInError,
    PaymentRequiredError,
    VerificationPendingError,
)


@dataclass(frozen=True)
class AccountState:
    is_active: bool = True
    is_logged_in: bool = False
    subscription_paid: bool = False
    is_verified: bool = False

    @classmethod
    def initial(cls) -> "AccountState":
        """State of a freshly registered account."""
        return cls()

    @classmethod
    def from_user(cls, user) -> "AccountState":
        return cls(
            is_active=bool(user.is_active),
            is_logged_in=bool(user.is_logged_in),
            subscription_paid=bool(user.subscription_paid),
            is_verified=bool(user.is_verified),
        )

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def check_login(self, single_session: bool = True) -> None:
        if single_session and self.is_logged_in:
            raise AlreadyLoggedInError()
        self.check_access()

    def check_access(self) -> None:
        if not self.is_active:
            raise AccountDeactivatedError()
        if not self.subscription_paid:
            raise PaymentRequiredError()
        if not self.is_verified:
            raise VerificationPendingError()

    @property
    def can_access(self) -> bool:
        return self.is_active and self.subscription_paid and self.is_verified

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def logged_in(self) -> "AccountState":
        return replace(self, is_logged_in=True)

    def logged_out(self) -> "AccountState":
        return replace(self, is_logged_in=False)

    def activated(self) -> "AccountState":
        return replace(self, is_active=True)

    def deactivated(self) -> "AccountState":
        # A deactivated account cannot hold a session
        return replace(self, is_active=False, is_logged_in=False)

    def paid(self) -> "AccountState":
        return replace(self, subscription_paid=True)

    def unpaid(self) -> "AccountState":
        return replace(self, subscription_paid=False)

    def verified(self) -> "AccountState":
        return replace(self, is_verified=True)

    def unverified(self) -> "AccountState":
        return replace(self, is_verified=False)

    def apply_to(self, user) -> None:
        """Write the flags back onto a User row (timestamps are the caller's job)."""
        user.is_active = self.is_active
        user.is_logged_in = self.is_logged_in
        user.subscription_paid = self.subscription_paid
        user.is_verified = self.is_verified
