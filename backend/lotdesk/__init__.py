# backend/lotdesk/__init__.py
from flask import Flask, request
from sqlalchemy.exc import SQLAlchemyError

from .config import Config
from .errors import StorageError
from .extensions import db, migrate



def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.products import products_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(admin_bp)

    allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or ())

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("BOOTSTRAP_ADMIN_ON_START"):
        _bootstrap_admin(app)

    return app


def _bootstrap_admin(app: Flask) -> None:
    """Create the configured admin if missing. Tables must already exist."""
    from .services.auth_service import ensure_default_admin

    with app.app_context():
        try:
            admin, created = ensure_default_admin(
                app.config.get("ADMIN_EMAIL"),
                app.config.get("ADMIN_PASSWORD"),
            )
        except (SQLAlchemyError, StorageError):
            db.session.rollback()
            app.logger.warning(
                "Default admin not ensured; run `flask db upgrade` then `flask system init`"
            )
            return

        if created:
            app.logger.info("Created default admin %s", admin.email)
