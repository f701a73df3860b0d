"""
Catalog error taxonomy and Flask error handlers

- ValidationError: missing/invalid input, no side effects
- Unauthenticated: missing, invalid or expired token
- Forbidden: authenticated but lacking the required privilege
- NotFound: song, playlist or user absent
- UpstreamUnavailable: database, object storage or identity provider failure
- BatchCommitError: a stage of a multi-stage administrative batch failed
"""

import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for errors reported to API callers"""
    status_code = 500

    def __init__(self, message, **detail):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self):
        payload = {'error': self.message}
        payload.update(self.detail)
        return payload


class ValidationError(CatalogError):
    status_code = 400


class Unauthenticated(CatalogError):
    status_code = 401


class Forbidden(CatalogError):
    status_code = 403


class NotFound(CatalogError):
    status_code = 404


class UpstreamUnavailable(CatalogError):
    """Raised when a network collaborator is unreachable or answers non-2xx"""
    status_code = 502


class BatchCommitError(UpstreamUnavailable):
    """
    Raised when one stage of a batch operation fails to commit.

    Stages committed before the failure stay committed; `report` carries
    whatever was already accomplished so callers can decide to re-run.
    """

    def __init__(self, stage, cause, report=None):
        super().__init__(f"{stage} batch commit failed: {cause}", stage=stage)
        self.stage = stage
        self.report = report

    def to_dict(self):
        payload = super().to_dict()
        if self.report is not None:
            payload['partial'] = self.report.to_dict()
        return payload


def register_error_handlers(app):
    """Map catalog errors to JSON responses"""

    @app.errorhandler(CatalogError)
    def handle_catalog_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        else:
            logger.info(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(500)
    def handle_internal_error(error):
        original = getattr(error, 'original_exception', None) or error
        logger.error(f"Unhandled error: {original}", exc_info=original)
        return jsonify({'error': 'Internal server error'}), 500
