# Overview: Request guard decorators for API routes.

"""
Access guard.

@require_auth resolves the bearer token into a Principal (admin or user)
and stores it on flask.g. The role decorators stacked below it enforce the
route's precondition:

- @require_admin:           admin only, users get 403
- @require_verified_user:   user that is active, paid and verified
- @require_admin_or_user:   admins pass; users must be active
- @require_admin_or_verified_user: admins pass; users must be active, paid
                            and verified (catalog reads)

User gates report the first failing condition in the fixed order
active -> paid -> verified. The guard never checks resource ownership.
"""

from functools import wraps
from flask import request, jsonify, g

from .account_state import AccountState
from .errors import AccountDeactivatedError, ForbiddenError, LotdeskError, UnauthenticatedError
from .services.principal import extract_bearer_token, resolve_principal


def _error_response(e: LotdeskError):
    return jsonify(e.to_dict()), e.status_code


def _is_authenticated() -> bool:
    return getattr(g, "principal", None) is not None


def current_principal():
    return getattr(g, "principal", None)


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.principal: the resolved Principal (kind + record)
    - g.current_admin / g.current_user: the record for the matching kind, else None

    Returns 401 if:
    - No Authorization header
    - Invalid, tampered or expired token
    - The admin/user named by the token no longer exists
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            token = extract_bearer_token(request.headers.get("Authorization"))
            principal = resolve_principal(token)
        except LotdeskError as e:
            return _error_response(e)

        g.principal = principal
        g.current_admin = principal.admin
        g.current_user = principal.user

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _error_response(UnauthenticatedError())
        if not g.principal.is_admin:
            return _error_response(ForbiddenError("Not authorized as admin"))
        return f(*args, **kwargs)
    return decorated_function


def require_verified_user(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _error_response(UnauthenticatedError())
        if not g.principal.is_user:
            return _error_response(ForbiddenError("Not authorized as user"))
        try:
            AccountState.from_user(g.principal.user).check_access()
        except LotdeskError as e:
            return _error_response(e)
        return f(*args, **kwargs)
    return decorated_function


def require_admin_or_user(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _error_response(UnauthenticatedError())
        principal = g.principal
        if principal.is_user and not principal.user.is_active:
            return _error_response(AccountDeactivatedError())
        return f(*args, **kwargs)
    return decorated_function


def require_admin_or_verified_user(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return _error_response(UnauthenticatedError())
        principal = g.principal
        if principal.is_user:
            try:
                AccountState.from_user(principal.user).check_access()
            except LotdeskError as e:
                return _error_response(e)
        return f(*args, **kwargs)
    return decorated_function
