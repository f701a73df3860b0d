"""
Authentication utilities - Firebase ID token verification

Identity is delegated to Firebase Authentication. Clients sign in there
(Google Sign-In, phone/OTP, ...) and send the resulting ID token; this
module verifies it with google-auth against Firebase's public keys.
"""

import logging
from dataclasses import dataclass, field

import google.auth.exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from errors import Unauthenticated, UpstreamUnavailable

logger = logging.getLogger(__name__)

# Firebase ID tokens live for one hour
ID_TOKEN_EXPIRY_SECONDS = 3600


@dataclass
class VerifiedIdentity:
    subject_id: str
    claims: dict = field(default_factory=dict)

    @property
    def email(self):
        return self.claims.get('email')

    @property
    def display_name(self):
        return self.claims.get('name')

    @property
    def phone_number(self):
        return self.claims.get('phone_number')


class IdentityVerifier:
    """Verifies Firebase ID tokens issued for one project"""

    def __init__(self, project_id, request=None):
        """
        Args:
            project_id: Firebase project id (token audience)
            request: Optional google.auth transport request
        """
        self.project_id = project_id
        self.request = request or google_requests.Request()

    def verify_token(self, token):
        """
        Verify an ID token

        Args:
            token: Encoded JWT from the client

        Returns:
            VerifiedIdentity

        Raises:
            Unauthenticated: If the token is missing, malformed, expired or
                issued for another project
            UpstreamUnavailable: If Google's certificates cannot be fetched
        """
        if not token:
            raise Unauthenticated('Authorization token required')
        if not self.project_id:
            logger.error("FIREBASE_PROJECT_ID is not configured; rejecting token")
            raise Unauthenticated('Token verification is not configured')

        try:
            claims = google_id_token.verify_firebase_token(
                token,
                self.request,
                audience=self.project_id
            )
        except google.auth.exceptions.TransportError as e:
            logger.error(f"Could not reach identity provider: {e}")
            raise UpstreamUnavailable('Identity provider unavailable', cause=str(e)) from e
        except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
            logger.info(f"Token verification failed: {e}")
            raise Unauthenticated('Invalid or expired token') from e

        if not claims or not claims.get('sub'):
            raise Unauthenticated('Invalid or expired token')

        return VerifiedIdentity(subject_id=claims['sub'], claims=claims)


def extract_bearer_token(auth_header):
    """
    Pull the token out of an Authorization header

    Raises:
        Unauthenticated: If the header is missing or not "Bearer <token>"
    """
    if not auth_header:
        raise Unauthenticated('Authorization header required')

    parts = auth_header.split(' ', 1)
    if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1].strip():
        raise Unauthenticated('Invalid Authorization header format. Must be Bearer <token>')

    return parts[1].strip()
