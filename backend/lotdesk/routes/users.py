# Overview: Flask API routes for end-customer accounts and payment verification; parses input and returns JSON responses.

# backend/lotdesk/routes/users.py
"""
User account and verification routes.

Public:
- POST /api/users/register
- POST /api/users/login

Authenticated (admin or the user themself):
- POST /api/users/logout
- POST /api/users/submit-payment
- GET  /api/users/verification-status/<user_id>

Admin only:
- GET  /api/users/verification-requests
- PUT  /api/users/verification-requests/<request_id>
- GET  /api/users/all
- GET  /api/users/<user_id>
- PUT  /api/users/<user_id>/status | subscription | verification
- POST /api/users/<user_id>/force-logout
- DELETE /api/users/<user_id>

Error bodies are {"message": ...}, plus paymentRequired / verificationPending /
alreadyLoggedIn flags where the client branches on them.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_admin, require_admin_or_user
from ..errors import ForbiddenError, LotdeskError, ValidationError
from ..models import REQUEST_STATUS_REJECTED
from ..services import account_service, token_service, verification_service
from ..validation import parse_bool, require_fields


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _error(e: LotdeskError):
    return jsonify(e.to_dict()), e.status_code


def _server_error(message: str):
    current_app.logger.exception(message)
    return jsonify({"message": "Server error"}), 500


def _page_args() -> tuple[int, int]:
    page = request.args.get("page", default=1, type=int) or 1
    limit = request.args.get("limit", default=current_app.config.get("DEFAULT_PAGE_SIZE", 10), type=int)
    max_limit = current_app.config.get("MAX_PAGE_SIZE", 100)
    limit = min(max(limit or 1, 1), max_limit)
    return max(page, 1), limit


def _optional_user_id(data: dict) -> int | None:
    raw = data.get("userId")
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValidationError("userId must be an integer")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("userId must be an integer")


# =============================================================================
# REGISTRATION & SESSION
# =============================================================================

@users_bp.post("/register")
def register_route():
    """
    Register a new end-customer account.

    Request body:
    {
        "name": "Asha",
        "mobile": "9000000001",
        "passkey": "..."
    }

    The account starts active, logged out, unpaid and unverified.
    A token is only returned when REGISTRATION_ISSUES_TOKEN is enabled.
    """
    try:
        data = request.get_json(silent=True) or {}
        fields = require_fields(data, "name", "mobile", "passkey")

        user = account_service.register(fields["name"], fields["mobile"], fields["passkey"])

        body = {
            "message": "Registration successful. Please submit your subscription payment.",
            "user": user.to_summary(),
        }
        if current_app.config.get("REGISTRATION_ISSUES_TOKEN"):
            body["token"] = token_service.issue_token(token_service.KIND_USER, user.id)

        return jsonify(body), 201

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to register user")


@users_bp.post("/login")
def login_route():
    """
    Authenticate a user by mobile + passkey.

    Failure order: 401 bad credentials, 403 already logged in,
    403 deactivated, 402 payment required, 403 verification pending.
    """
    try:
        data = request.get_json(silent=True) or {}
        fields = require_fields(data, "mobile", "passkey")

        result = account_service.login(fields["mobile"], fields["passkey"])

        return jsonify({
            "message": "Login successful",
            "user": result.user.to_summary(),
            "token": result.token,
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to login user")


@users_bp.post("/logout")
@require_auth
def logout_route():
    """
    End a user's session.

    A user logs themself out; an optional "userId" in the body must match.
    An admin must name the user to log out.
    Tokens are not revoked; they remain valid until expiry.
    """
    try:
        data = request.get_json(silent=True) or {}
        user_id = _optional_user_id(data)
        principal = g.principal

        if principal.is_user:
            if user_id is not None and user_id != principal.id:
                raise ForbiddenError("Not authorized to log out another user")
            user_id = principal.id
        elif user_id is None:
            raise ValidationError("userId is required")

        user = account_service.logout(user_id)
        return jsonify({
            "message": "Logout successful",
            "isLoggedIn": user.is_logged_in,
            "lastLogoutAt": user.to_dict()["lastLogoutAt"],
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to logout user")


# =============================================================================
# PAYMENT VERIFICATION
# =============================================================================

@users_bp.post("/submit-payment")
@require_auth
@require_admin_or_user
def submit_payment_route():
    """
    Submit a self-reported subscription payment.

    Request body:
    {
        "userId": 12,            // optional for users (defaults to self), required for admins
        "transactionId": "UPI-4821"
    }

    Marks the subscription paid and opens a pending verification request.
    """
    try:
        data = request.get_json(silent=True) or {}
        fields = require_fields(data, "transactionId")
        user_id = _optional_user_id(data)
        principal = g.principal

        if user_id is None:
            if not principal.is_user:
                raise ValidationError("userId is required")
            user_id = principal.id

        submission = verification_service.submit_payment(
            user_id=user_id,
            transaction_id=fields["transactionId"],
            caller=principal,
        )

        return jsonify({
            "message": "Payment submitted successfully. Awaiting admin verification.",
            "requestId": submission.request.id,
            "user": submission.user.to_summary(),
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to submit payment")


@users_bp.get("/verification-status/<int:user_id>")
@require_auth
@require_admin_or_user
def verification_status_route(user_id: int):
    """Account flags plus the newest pending request (or null)."""
    try:
        return jsonify(verification_service.check_status(user_id, g.principal)), 200
    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to load verification status")


@users_bp.get("/verification-requests")
@require_auth
@require_admin
def list_verification_requests_route():
    """
    List verification requests, newest first.

    Query params:
    - status: pending | approved | rejected | all (default all)
    - search: substring of name, mobile or transaction id
    """
    try:
        requests_ = verification_service.list_requests(
            status=request.args.get("status"),
            search=request.args.get("search"),
        )
        return jsonify(requests_), 200
    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to list verification requests")


@users_bp.put("/verification-requests/<int:request_id>")
@require_auth
@require_admin
def adjudicate_route(request_id: int):
    """
    Approve or reject a verification request.

    Request body:
    {
        "status": "approved" | "rejected",
        "remarks": "..."          // required when rejecting
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        fields = require_fields(data, "status")
        status = fields["status"]
        remarks = data.get("remarks") or ""
        if not isinstance(remarks, str):
            raise ValidationError("remarks must be a string")

        if status == REQUEST_STATUS_REJECTED and not remarks.strip():
            raise ValidationError("Remarks are required when rejecting a request")

        admin = g.current_admin
        updated = verification_service.adjudicate(
            request_id=request_id,
            status=status,
            remarks=remarks,
            admin_id=admin.id,
        )
        current_app.logger.info(
            "Verification request %s %s by admin %s", updated.id, updated.status, admin.email
        )

        return jsonify({
            "message": f"Verification request {updated.status} successfully",
            "request": updated.to_dict(),
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to update verification request")


# =============================================================================
# USER MANAGEMENT (ADMIN)
# =============================================================================

@users_bp.get("/all")
@require_auth
@require_admin
def list_users_route():
    """
    Paginated user directory.

    Query params:
    - page, limit
    - search: name or mobile
    - subscriptionStatus: paid | unpaid
    - verificationStatus: verified | unverified
    - loginStatus: online | offline
    """
    try:
        page, limit = _page_args()
        result = account_service.list_users(
            page=page,
            limit=limit,
            search=request.args.get("search"),
            subscription_status=request.args.get("subscriptionStatus"),
            verification_status=request.args.get("verificationStatus"),
            login_status=request.args.get("loginStatus"),
        )
        return jsonify(result), 200
    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to list users")


@users_bp.get("/<int:user_id>")
@require_auth
@require_admin
def get_user_route(user_id: int):
    try:
        return jsonify(account_service.get_user_detail(user_id)), 200
    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to load user")


@users_bp.put("/<int:user_id>/status")
@require_auth
@require_admin
def update_status_route(user_id: int):
    """
    Override isActive and/or isLoggedIn.

    Deactivating also logs the user out.
    """
    try:
        data = request.get_json(silent=True) or {}
        is_active = parse_bool(data["isActive"], "isActive") if "isActive" in data else None
        is_logged_in = parse_bool(data["isLoggedIn"], "isLoggedIn") if "isLoggedIn" in data else None
        if is_active is None and is_logged_in is None:
            raise ValidationError("Provide isActive and/or isLoggedIn")

        user = account_service.update_status(user_id, is_active=is_active, is_logged_in=is_logged_in)
        current_app.logger.info("User %s status updated by admin %s", user.id, g.current_admin.email)

        return jsonify({
            "message": "User status updated successfully",
            "user": user.to_dict(),
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to update user status")


@users_bp.put("/<int:user_id>/subscription")
@require_auth
@require_admin
def update_subscription_route(user_id: int):
    """
    Request body:
    {
        "subscriptionPaid": true,
        "transactionId": "..."   // optional, stored when marking paid
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        if "subscriptionPaid" not in data:
            raise ValidationError("Missing required fields: subscriptionPaid")
        paid = parse_bool(data["subscriptionPaid"], "subscriptionPaid")
        transaction_id = data.get("transactionId")
        if transaction_id is not None and not isinstance(transaction_id, str):
            raise ValidationError("transactionId must be a string")

        user = account_service.set_subscription_paid(user_id, paid, transaction_id=transaction_id)
        current_app.logger.info(
            "User %s subscriptionPaid=%s set by admin %s", user.id, paid, g.current_admin.email
        )

        return jsonify({
            "message": "Subscription status updated successfully",
            "user": user.to_dict(),
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to update subscription status")


@users_bp.put("/<int:user_id>/verification")
@require_auth
@require_admin
def update_verification_route(user_id: int):
    """
    Directly verify or unverify a user.

    Any pending verification request is resolved to match, with a
    "Manually verified/rejected by admin" remark.
    """
    try:
        data = request.get_json(silent=True) or {}
        if "isVerified" not in data:
            raise ValidationError("Missing required fields: isVerified")
        verified = parse_bool(data["isVerified"], "isVerified")

        admin = g.current_admin
        user = account_service.set_verified(user_id, verified, admin_id=admin.id)
        current_app.logger.info("User %s isVerified=%s set by admin %s", user.id, verified, admin.email)

        return jsonify({
            "message": f"User verification {'approved' if verified else 'rejected'} successfully",
            "user": user.to_dict(),
        }), 200

    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to update user verification")


@users_bp.post("/<int:user_id>/force-logout")
@require_auth
@require_admin
def force_logout_route(user_id: int):
    try:
        user = account_service.force_logout(user_id)
        current_app.logger.info("User %s force-logged-out by admin %s", user.id, g.current_admin.email)
        return jsonify({
            "message": "User logged out successfully",
            "user": user.to_dict(),
        }), 200
    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to force logout user")


@users_bp.delete("/<int:user_id>")
@require_auth
@require_admin
def delete_user_route(user_id: int):
    """Delete a user and all of their verification requests."""
    try:
        deleted = account_service.delete_user(user_id)
        current_app.logger.info("User %s deleted by admin %s", deleted["id"], g.current_admin.email)
        return jsonify({
            "message": "User deleted successfully",
            "deletedUser": deleted,
        }), 200
    except LotdeskError as e:
        return _error(e)
    except Exception:
        return _server_error("Failed to delete user")
