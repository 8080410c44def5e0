# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/lotdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask db upgrade
#   Create or migrate the schema (Flask-Migrate).
# - python -m flask system init [--create-tables]
#   Idempotent bootstrap: ensures the admin from ADMIN_EMAIL / ADMIN_PASSWORD exists.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Delete users, verification requests and products; keep admins.
#
# Admin accounts:
# - python -m flask admins list
# - python -m flask admins create --email ops@lotdesk.local --password "ChangeMe123!"
#
# User inspection:
# - python -m flask users list [--online] [--pending]
#   List users with their four access flags.
# - python -m flask users force-logout 12
#   Clear the logged-in flag so the user can sign in again.
#
# Catalog inspection:
# - python -m flask products list [--search pixel] [--limit 20]

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import LotdeskError
from .extensions import db
from .models import Admin, Product, User, VerificationRequest, REQUEST_STATUS_PENDING
from .services import account_service, auth_service
from .services.products_service import list_products as list_products_service


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--create-tables', is_flag=True, help='Run db.create_all() first (no migrations)')
@with_appcontext
def init_system(create_tables):
    """
    Initialize lotdesk: make sure the configured console admin exists.

    Uses ADMIN_EMAIL and ADMIN_PASSWORD from configuration. Running it twice
    is harmless; an existing admin's password is not changed.

    SECURITY: Change the default password in production!
    """
    click.echo("START Initializing lotdesk...")

    if create_tables:
        db.create_all()
        click.echo("PASS Tables created")

    email = current_app.config.get("ADMIN_EMAIL")
    password = current_app.config.get("ADMIN_PASSWORD")

    try:
        admin, created = auth_service.ensure_default_admin(email, password)
    except LotdeskError as e:
        click.echo(f"FAIL Could not ensure admin: {e.message}")
        return

    if admin is None:
        click.echo("WARN  ADMIN_EMAIL / ADMIN_PASSWORD not configured, no admin created")
    elif created:
        click.echo(f"PASS Created admin: {admin.email}")
    else:
        click.echo(f"PASS Admin already exists: {admin.email}")

    click.echo("DONE lotdesk initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Clear users, verification requests and products. Admins are kept.
    """
    if not yes:
        click.confirm("WARN This will DELETE all users and products. Are you sure?", abort=True)

    click.echo("WIPE  Clearing data...")
    requests_deleted = db.session.query(VerificationRequest).delete(synchronize_session=False)
    users_deleted = db.session.query(User).delete(synchronize_session=False)
    products_deleted = db.session.query(Product).delete(synchronize_session=False)
    db.session.commit()

    click.echo(
        f"PASS Deleted {users_deleted} users, {requests_deleted} verification requests, "
        f"{products_deleted} products"
    )


# =============================================================================
# ADMIN ACCOUNTS
# =============================================================================

@click.group('admins')
def admins_group():
    """Console admin account commands."""


@admins_group.command('list')
@with_appcontext
def list_admins():
    """List console admins."""
    admins = db.session.query(Admin).order_by(Admin.id).all()

    if not admins:
        click.echo("No admins found. Run: python -m flask system init")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Email':<35} {'Created'}")
    click.echo("="*60)
    for admin in admins:
        click.echo(f"{admin.id:<5} {admin.email:<35} {str(admin.created_at)[:19]}")
    click.echo("="*60 + "\n")


@admins_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin_cli(email, password):
    """Create an additional console admin."""
    try:
        admin = auth_service.create_admin(email, password)
    except LotdeskError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Created admin: {admin.email} (ID: {admin.id})")


# =============================================================================
# USER INSPECTION
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and repair commands."""


@users_group.command('list')
@click.option('--online', is_flag=True, help='Only users currently logged in')
@click.option('--pending', is_flag=True, help='Only users with a pending verification request')
@with_appcontext
def list_users(online, pending):
    """List users with their access flags."""
    query = db.session.query(User)

    if online:
        query = query.filter(User.is_logged_in.is_(True))
    if pending:
        query = query.filter(
            User.verification_requests.any(VerificationRequest.status == REQUEST_STATUS_PENDING)
        )

    users = query.order_by(User.created_at.desc(), User.id.desc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<25} {'Mobile':<16} {'Active':<8} {'Paid':<6} {'Verified':<9} {'Online'}")
    click.echo("="*100)

    for user in users:
        click.echo(
            f"{user.id:<5} {user.name[:24]:<25} {user.mobile:<16} {_yes_no(user.is_active):<8} "
            f"{_yes_no(user.subscription_paid):<6} {_yes_no(user.is_verified):<9} {_yes_no(user.is_logged_in)}"
        )

    click.echo("="*100 + "\n")


@users_group.command('force-logout')
@click.argument('user_id', type=int)
@with_appcontext
def force_logout_cli(user_id):
    """Clear a user's logged-in flag (e.g. after a lost device)."""
    try:
        user = account_service.force_logout(user_id)
    except LotdeskError as e:
        click.echo(f"FAIL {e.message}")
        return
    click.echo(f"PASS Logged out {user.name} ({user.mobile})")


# =============================================================================
# CATALOG INSPECTION
# =============================================================================

@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('list')
@click.option('--search', default=None, help='Match phone name, brand, lot name or key')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_products(search, limit):
    """List the newest products."""
    result = list_products_service(search=search, page=1, limit=limit)
    items = result["items"]

    if not items:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*110)
    click.echo(f"{'ID':<5} {'Key':<18} {'Phone':<28} {'Brand':<12} {'Grade':<12} {'Floated':>10} {'Active':>8}")
    click.echo("="*110)

    for p in items:
        click.echo(
            f"{p['id']:<5} {p['key'][:17]:<18} {p['phoneName'][:27]:<28} {p['brand'][:11]:<12} "
            f"{p['grade']:<12} {p['floatedPrice']:>10.2f} {_yes_no(p['isActive']):>8}"
        )

    click.echo("="*110)
    click.echo(f"Showing {len(items)} of {result['total']}\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
