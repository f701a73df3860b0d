"""
Authentication routes: register, login, current user

Sign-in itself happens on the client against Firebase Authentication.
These endpoints verify the resulting ID token and maintain the user
document:
- POST /register - verify token, create the user document if absent
- POST /login    - verify token (the ID token is the session token)
- GET  /users/me - stored profile of the authenticated caller
"""

from flask import Blueprint, request, jsonify, g
import logging

from auth_utils import ID_TOKEN_EXPIRY_SECONDS
from catalog import current_catalog
from errors import NotFound, ValidationError
from middleware.auth_middleware import require_auth
from models import to_unix, utc_now

logger = logging.getLogger(__name__)
auth_bp = Blueprint('auth', __name__)


def _id_token_from_body():
    data = request.get_json(silent=True) or {}
    id_token = data.get('idToken')
    if not id_token:
        raise ValidationError('Invalid request: IDToken required')
    return id_token


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register the holder of a Firebase ID token

    Request body:
        {"idToken": "eyJhbGciOiJSUzI1NiIs..."}

    Returns:
        201: {"message", "uid"} - user document created
        200: {"message", "uid"} - already registered (acts as login)
        400: Missing idToken
        401: Invalid or expired token
    """
    id_token = _id_token_from_body()
    catalog = current_catalog()
    identity = catalog.verifier.verify_token(id_token)

    created = catalog.store.create_user_if_absent(
        uid=identity.subject_id,
        email=identity.email,
        display_name=identity.display_name,
        phone_number=identity.phone_number,
        created_at=utc_now(),
    )

    if created:
        logger.info(f"User registered: {identity.subject_id}")
        return jsonify({
            'message': 'User registered and logged in successfully',
            'uid': identity.subject_id
        }), 201

    return jsonify({
        'message': 'User already registered and logged in successfully',
        'uid': identity.subject_id
    }), 200


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Verify a Firebase ID token

    Returns:
        200: {"message", "uid", "token", "expiresIn"}
        401: Invalid or expired token
    """
    id_token = _id_token_from_body()
    identity = current_catalog().verifier.verify_token(id_token)

    return jsonify({
        'message': 'Authentication successful',
        'uid': identity.subject_id,
        'token': id_token,
        'expiresIn': ID_TOKEN_EXPIRY_SECONDS,
    })


@auth_bp.route('/users/me', methods=['GET'])
@require_auth
def get_current_user():
    """Stored profile for the caller; 404 until /register has been called"""
    user = current_catalog().store.get_user(g.current_user.subject_id)
    if not user:
        raise NotFound('User not registered', uid=g.current_user.subject_id)

    return jsonify({
        'uid': user['uid'],
        'email': user['email'],
        'displayName': user['display_name'],
        'phoneNumber': user['phone_number'],
        'createdAt': to_unix(user['created_at']),
    })
