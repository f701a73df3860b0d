"""
Authentication middleware for protecting Flask routes

This module provides decorators for:
- require_auth: Require a valid Firebase ID token
- require_admin: Require a valid token carrying admin privilege
"""

from functools import wraps
from flask import request, g
import logging

from auth_utils import extract_bearer_token
from catalog import current_catalog
from errors import Forbidden

logger = logging.getLogger(__name__)


def require_auth(f):
    """
    Decorator to require a valid bearer token

    Usage:
        @bp.route('/protected')
        @require_auth
        def protected_route():
            uid = g.current_user.subject_id

    g.current_user is a VerifiedIdentity (subject_id, claims). Verification
    happens before the route touches any data.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_bearer_token(request.headers.get('Authorization'))
        g.current_user = current_catalog().verifier.verify_token(token)
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """
    Decorator for administrative operations (bulk migrations, backfills)

    Authenticates like require_auth, then requires an `admin: true` claim
    or a uid listed in ADMIN_UIDS.
    """
    @wraps(f)
    @require_auth
    def decorated_function(*args, **kwargs):
        if not current_catalog().is_admin(g.current_user):
            logger.warning(f"Admin access denied for {g.current_user.subject_id} on {request.path}")
            raise Forbidden('Administrator privilege required')
        return f(*args, **kwargs)

    return decorated_function
