"""
Admin Routes - catalog maintenance

Both operations are whole-collection batch passes, safe to re-run, and
gated behind require_admin:
- POST /admin/migrate-artists          - reconcile artist identities
- POST /admin/normalize-search-fields  - backfill search keys
"""

from flask import Blueprint, jsonify, request, g
import logging

from catalog import current_catalog
from middleware.auth_middleware import require_admin
from utils.helpers import parse_bool

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/migrate-artists', methods=['POST'])
@require_admin
def migrate_artists():
    """
    Merge duplicate artists and relink every song to canonical ids

    Query params:
        dry_run: "true" to compute the report without writing

    Returns:
        200: {"message", "artists_stabilized", "duplicates_deleted",
              "songs_updated_count", ...}
        502: {"error", "stage", "partial"} when a batch fails
    """
    dry_run = parse_bool(request.args.get('dry_run'))
    logger.info(f"Artist migration requested by {g.current_user.subject_id} (dry_run={dry_run})")

    report = current_catalog().artists.reconcile(dry_run=dry_run)

    message = ('Dry run complete; no changes written.' if dry_run
               else 'Artist IDs successfully normalized and songs updated.')
    return jsonify({'message': message, **report.to_dict()})


@admin_bp.route('/normalize-search-fields', methods=['POST'])
@require_admin
def normalize_search_fields():
    """
    Recompute songs.search_title and artists.search_name

    Returns:
        200: {"message", "songs_updated", "artists_updated", ...}
    """
    logger.info(f"Search field normalization requested by {g.current_user.subject_id}")

    report = current_catalog().search_index.backfill_search_fields()

    return jsonify({'message': 'Search fields successfully normalized.', **report.to_dict()})
