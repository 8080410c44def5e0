# backend/lotdesk/routes/system.py
"""
System health endpoint.

Reports database reachability and whether a console admin exists, for
deployment checks and load balancer probes.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Admin, Product, User, VerificationRequest
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


def check_database_health() -> dict:
    """
    Check database connectivity by counting rows in each table.
    """
    start_time = time.time()
    try:
        details = {
            "admins": db.session.query(Admin).count(),
            "users": db.session.query(User).count(),
            "verification_requests": db.session.query(VerificationRequest).count(),
            "products": db.session.query(Product).count(),
        }
        return {
            "status": "healthy",
            "latency_ms": _elapsed_ms(start_time),
            "details": details,
        }
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Database error",
        }


def check_admin_health() -> dict:
    """Degraded when nobody can sign in to the console."""
    start_time = time.time()
    try:
        admin_count = db.session.query(Admin).count()
    except Exception:
        current_app.logger.exception("Admin health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": _elapsed_ms(start_time),
            "error": "Admin lookup error",
        }

    if admin_count == 0:
        return {
            "status": "degraded",
            "latency_ms": _elapsed_ms(start_time),
            "warning": "No admin account configured; run `flask system init`",
        }
    return {
        "status": "healthy",
        "latency_ms": _elapsed_ms(start_time),
        "details": {"admins": admin_count},
    }


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    admin_health = check_admin_health()

    checks = [database_health, admin_health]
    if any(check["status"] == "unhealthy" for check in checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _elapsed_ms(start_time),
        "checks": {
            "database": database_health,
            "admin": admin_health,
        },
    }, http_status
