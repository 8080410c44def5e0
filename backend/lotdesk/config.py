# backend/lotdesk/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Token signing (falls back to SECRET_KEY)
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    TOKEN_TTL_DAYS = int(os.environ.get("TOKEN_TTL_DAYS", "30"))

    # bcrypt cost factor for admin passwords and user passkeys
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

    # Relative SQLite URIs resolve against the Flask instance path (backend/lotdesk/instance/)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///lotdesk.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Default admin, ensured once at startup
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@lotdesk.local")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "ChangeMe123!")
    BOOTSTRAP_ADMIN_ON_START = _env_flag("BOOTSTRAP_ADMIN_ON_START", "true")

    # Account workflow switches
    SINGLE_SESSION_LOGIN = _env_flag("SINGLE_SESSION_LOGIN", "true")
    REGISTRATION_ISSUES_TOKEN = _env_flag("REGISTRATION_ISSUES_TOKEN", "false")

    # Dashboard revenue per approved verification
    SUBSCRIPTION_FEE = int(os.environ.get("SUBSCRIPTION_FEE", "40"))

    DEFAULT_PAGE_SIZE = int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
