"""
Configuration Module for the Music Catalog API
Handles logging setup, environment settings and Flask app initialization
"""

import os
import logging
from dataclasses import dataclass, field

from storage_service import DEFAULT_API_BASE, DEFAULT_SIGNED_URL_TTL

logger = logging.getLogger(__name__)


def configure_logging(level=logging.INFO):
    """
    Configure application logging with standard format

    Returns:
        Logger instance for the config module
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger(__name__)


def _mask(value):
    return f"{value[:5]}..." if value else '(not set)'


@dataclass
class Settings:
    b2_account_id: str = ''
    b2_application_key: str = ''
    b2_bucket_name: str = ''
    b2_api_base: str = DEFAULT_API_BASE
    firebase_project_id: str = ''
    admin_uids: frozenset = field(default_factory=frozenset)
    search_strictness: str = 'best_effort'
    signed_url_ttl: int = DEFAULT_SIGNED_URL_TTL
    port: int = 5001

    @classmethod
    def from_env(cls, environ=None):
        """Build settings from environment variables (call load_dotenv() first)"""
        env = os.environ if environ is None else environ
        admin_uids = frozenset(
            uid.strip() for uid in env.get('ADMIN_UIDS', '').split(',') if uid.strip()
        )
        return cls(
            b2_account_id=env.get('B2_ACCOUNT_ID', ''),
            b2_application_key=env.get('B2_APPLICATION_KEY', ''),
            b2_bucket_name=env.get('B2_BUCKET_NAME', ''),
            b2_api_base=env.get('B2_API_BASE', DEFAULT_API_BASE),
            firebase_project_id=env.get('FIREBASE_PROJECT_ID', ''),
            admin_uids=admin_uids,
            search_strictness=env.get('SEARCH_STRICTNESS', 'best_effort'),
            signed_url_ttl=int(env.get('SIGNED_URL_TTL', DEFAULT_SIGNED_URL_TTL)),
            port=int(env.get('PORT', 5001)),
        )

    def log_summary(self):
        """Log which settings are present, masking secrets"""
        logger.info(f"B2_ACCOUNT_ID: {self.b2_account_id or '(not set)'}")
        logger.info(f"B2_APPLICATION_KEY: {_mask(self.b2_application_key)}")
        logger.info(f"B2_BUCKET_NAME: {self.b2_bucket_name or '(not set)'}")
        logger.info(f"FIREBASE_PROJECT_ID: {self.firebase_project_id or '(not set)'}")
        logger.info(f"Admin UIDs configured: {len(self.admin_uids)}")
        logger.info(f"Search strictness: {self.search_strictness}")
        logger.info(f"PORT: {self.port}")


def init_app_config(app):
    """
    Initialize Flask app configuration

    This sets up:
    - Custom JSON provider for timestamp formatting
    """
    from utils.json_provider import CustomJSONProvider
    app.json = CustomJSONProvider(app)


def set_db_pooling_mode():
    """
    Set database pooling mode environment variable

    Must run before the first get_db_connection() call in the web process.
    """
    os.environ['DB_USE_POOLING'] = 'true'
