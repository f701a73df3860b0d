"""
Music Catalog API Backend
A Flask API for uploading, browsing and searching songs, artists and playlists
"""

from flask import Flask, request
from flask_cors import CORS
import atexit
import logging
import os

from dotenv import load_dotenv

from config import configure_logging, init_app_config, set_db_pooling_mode, Settings
from catalog import Catalog
from errors import register_error_handlers
import db_utils as db_tools

logger = logging.getLogger(__name__)


def create_app(catalog=None, settings=None):
    """
    Build the Flask application

    Args:
        catalog: Pre-built Catalog (tests inject one with fake collaborators)
        settings: Settings; read from the environment when omitted

    Returns:
        Flask app
    """
    if catalog is None:
        settings = settings or Settings.from_env()
        catalog = Catalog.from_settings(settings)

    app = Flask(__name__)
    CORS(app)
    init_app_config(app)
    register_error_handlers(app)
    app.extensions['catalog'] = catalog

    from routes import register_blueprints
    register_blueprints(app)

    @app.before_request
    def log_request():
        """Log incoming requests"""
        logger.info(f"{request.method} {request.path}")

    @app.after_request
    def log_response(response):
        """Log response status"""
        logger.info(f"{request.method} {request.path} - {response.status_code}")
        return response

    logger.info(f"Flask app initialized in PID {os.getpid()}")
    return app


def create_production_app():
    """Entry point used by wsgi.py and __main__: env, logging, pooling"""
    load_dotenv()
    configure_logging()
    set_db_pooling_mode()

    settings = Settings.from_env()
    settings.log_summary()

    atexit.register(cleanup_connections)
    return create_app(settings=settings)


def cleanup_connections():
    """Close the connection pool on shutdown"""
    logger.info("Shutting down connection pool...")
    db_tools.stop_keepalive_thread()
    db_tools.close_connection_pool()
    logger.info("Connection pool closed")


if __name__ == '__main__':
    # Running directly with 'python app.py' (not gunicorn)
    app = create_production_app()
    logger.info("Starting Flask application directly (not gunicorn)...")
    logger.info("Database connection pool will initialize on first request")

    db_tools.start_keepalive_thread()
    app.run(debug=True, host='0.0.0.0', port=app.extensions['catalog'].settings.port)
