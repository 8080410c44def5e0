# Overview: Flask API routes for admin auth operations; parses input and returns JSON responses.

# backend/lotdesk/routes/auth.py
"""
Admin authentication API routes.

Console admins sign in with email + password and receive a bearer token
valid for TOKEN_TTL_DAYS. End-customer login lives under /api/users/login.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..errors import LotdeskError
from ..services import auth_service, token_service
from ..validation import require_fields


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate an admin and issue a token.

    Request body:
    {
        "email": "admin@lotdesk.local",
        "password": "..."
    }

    Returns {id, email, token} on success, 401 on bad credentials.
    """
    try:
        data = request.get_json(silent=True) or {}
        fields = require_fields(data, "email", "password")

        admin = auth_service.authenticate_admin(fields["email"], fields["password"])
        token = token_service.issue_token(token_service.KIND_ADMIN, admin.id)

        current_app.logger.info("Admin %s signed in", admin.email)
        return jsonify({
            "id": admin.id,
            "email": admin.email,
            "token": token,
        }), 200

    except LotdeskError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to login admin")
        return jsonify({"message": "Server error"}), 500


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """
    Validate a bearer token and return the identity it resolves to.

    Expects Authorization header: Bearer <token>

    The console calls this on reload to restore a stored session.
    """
    return jsonify({
        "principal": g.principal.to_dict(),
        "message": "Token valid",
    }), 200
