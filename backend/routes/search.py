# routes/search.py
from flask import Blueprint, jsonify, request
import logging

from catalog import current_catalog

logger = logging.getLogger(__name__)
search_bp = Blueprint('search', __name__)


@search_bp.route('/search', methods=['GET'])
def search():
    """
    Prefix search over song titles and artist names

    Query params:
        q: Search text (case and surrounding whitespace ignored)

    Returns:
        200: {"results": [{"id", "title", "artistNames", "artwork", "url",
                           "duration", "type": "song"|"artist"}, ...]}
    """
    results = current_catalog().query.search(request.args.get('q', ''))
    return jsonify({'results': [result.to_dict() for result in results]})
