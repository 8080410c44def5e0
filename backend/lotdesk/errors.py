# Overview: Error taxonomy shared by services, guards and routes.

"""
Domain errors with their HTTP mapping.

Services raise these; route handlers return ``e.to_dict(), e.status_code``.
Anything that is not a LotdeskError is logged by the route and mapped to a
generic 500 with a non-leaking message.
"""

from __future__ import annotations


class LotdeskError(Exception):
    status_code = 500
    default_message = "Server error"
    # Optional boolean field added to the JSON body for client branching
    flag: str | None = None

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.flag:
            body[self.flag] = True
        return body


class NotFoundError(LotdeskError):
    status_code = 404
    default_message = "Not found"


class DuplicateKeyError(LotdeskError):
    """Unique-constraint violation (mobile, product key, admin email)."""
    status_code = 400
    default_message = "Duplicate key"


class DuplicateUserError(DuplicateKeyError):
    default_message = "User with this mobile number already exists"


class ValidationError(LotdeskError):
    """400-level input problem."""
    status_code = 400
    default_message = "Invalid request"


class InvalidCredentialsError(LotdeskError):
    status_code = 401
    default_message = "Invalid credentials"


class UnauthenticatedError(LotdeskError):
    status_code = 401
    default_message = "Not authorized, no token"


class ForbiddenError(LotdeskError):
    status_code = 403
    default_message = "Not authorized to access this resource"


class AccountDeactivatedError(LotdeskError):
    status_code = 403
    default_message = "Account is deactivated"


class PaymentRequiredError(LotdeskError):
    status_code = 402
    default_message = "Subscription payment required"
    flag = "paymentRequired"


class VerificationPendingError(LotdeskError):
    status_code = 403
    default_message = "Account verification pending"
    flag = "verificationPending"


class AlreadyLoggedInError(LotdeskError):
    status_code = 403
    default_message = "User is already logged in on another device"
    flag = "alreadyLoggedIn"


class AlreadyPaidError(LotdeskError):
    status_code = 400
    default_message = "Subscription already paid"


class StorageError(LotdeskError):
    status_code = 500
    default_message = "Server error"
