# Overview: Flask API routes for the admin console dashboard.

# backend/lotdesk/routes/admin.py
from flask import Blueprint, jsonify, current_app

from ..decorators import require_auth, require_admin
from ..services.dashboard_service import dashboard_summary

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/dashboard")
@require_auth
@require_admin
def dashboard():
    """
    Headline counts for the console landing page.

    totalRevenue = approvedVerifications * SUBSCRIPTION_FEE
    """
    try:
        summary = dashboard_summary(current_app.config.get("SUBSCRIPTION_FEE", 40))
    except Exception:
        current_app.logger.exception("Failed to build dashboard summary")
        return jsonify({"message": "Server error"}), 500

    return jsonify(summary), 200
