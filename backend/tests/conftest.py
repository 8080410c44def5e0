"""
Pytest fixtures for lotdesk backend tests.

Provides test database setup, seeded admin/user fixtures, and test client.
"""

import pytest
from flask import Blueprint, g, jsonify

from lotdesk import create_app
from lotdesk.config import Config
from lotdesk.decorators import require_auth, require_verified_user
from lotdesk.extensions import db
from lotdesk.models import Admin, Product, User
from lotdesk.services.auth_service import hash_password
from lotdesk.services import token_service


ADMIN_EMAIL = "admin@lotdesk.test"
ADMIN_PASSWORD = "AdminPass123!"
USER_PASSKEY = "4321"


class UnitTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    BCRYPT_ROUNDS = 4
    BOOTSTRAP_ADMIN_ON_START = False
    ADMIN_EMAIL = ADMIN_EMAIL
    ADMIN_PASSWORD = ADMIN_PASSWORD
    SINGLE_SESSION_LOGIN = True
    REGISTRATION_ISSUES_TOKEN = False


# Route used only by tests to exercise the user-only guard directly
guarded_bp = Blueprint("guarded", __name__, url_prefix="/api/guarded")


@guarded_bp.get("/verified-user")
@require_auth
@require_verified_user
def verified_user_only():
    return jsonify({"userId": g.principal.id}), 200


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(UnitTestConfig)
    app.register_blueprint(guarded_bp)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin(db_session):
    """Console admin."""
    admin = Admin(email=ADMIN_EMAIL, password_hash=hash_password(ADMIN_PASSWORD))
    db_session.add(admin)
    db_session.commit()
    return admin


def make_user(db_session, mobile, name="Test User", **flags):
    """Insert a user directly with the given flags (defaults: fresh account)."""
    user = User(
        id=flags.get("id"),
        name=name,
        mobile=mobile,
        passkey_hash=hash_password(USER_PASSKEY),
        transaction_id="",
        is_active=flags.get("is_active", True),
        is_logged_in=flags.get("is_logged_in", False),
        subscription_paid=flags.get("subscription_paid", False),
        is_verified=flags.get("is_verified", False),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def new_user(db_session):
    """Registered, unpaid, unverified."""
    return make_user(db_session, "9000000001", name="Asha")


@pytest.fixture(scope='function')
def paid_user(db_session):
    """Paid, awaiting verification."""
    return make_user(db_session, "9000000002", name="Bala", subscription_paid=True)


@pytest.fixture(scope='function')
def verified_user(db_session):
    """Active, paid and verified: may log in and read the catalog."""
    return make_user(
        db_session, "9000000003", name="Chitra",
        subscription_paid=True, is_verified=True,
    )


@pytest.fixture(scope='function')
def product(db_session):
    product = Product(
        phone_name="Pixel 7",
        brand="Google",
        lot_name="Lot-42",
        specifications="8GB / 128GB",
        channel_price=100,
        ss_price=110,
        floated_price=120,
        grade="A",
        key="PX7-001",
    )
    db_session.add(product)
    db_session.commit()
    return product


def token_for_admin(admin) -> str:
    return token_service.issue_token(token_service.KIND_ADMIN, admin.id)


def token_for_user(user) -> str:
    return token_service.issue_token(token_service.KIND_USER, user.id)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(token_for_admin(admin))
