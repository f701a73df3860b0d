"""
Playlist Routes

All endpoints require auth and act on the caller's own playlists:
- GET  /playlists              - list playlists, newest first
- POST /playlists              - create a playlist
- POST /playlists/<id>/songs   - add a song snapshot to a playlist
"""

from flask import Blueprint, jsonify, request, g
import logging

from catalog import current_catalog
from middleware.auth_middleware import require_auth

logger = logging.getLogger(__name__)
playlists_bp = Blueprint('playlists', __name__)


@playlists_bp.route('/playlists', methods=['GET'])
@require_auth
def get_playlists():
    playlists = current_catalog().playlists.list_for_user(g.current_user.subject_id)
    return jsonify({'playlists': [playlist.to_dict() for playlist in playlists]})


@playlists_bp.route('/playlists', methods=['POST'])
@require_auth
def create_playlist():
    """
    Request body:
        {"name": "Road trip", "description": "optional"}

    Returns:
        200: {"message": "Playlist created", "playlistId": "..."}
        400: Missing name
    """
    data = request.get_json(silent=True) or {}
    playlist_id = current_catalog().playlists.create(
        g.current_user.subject_id,
        data.get('name'),
        data.get('description', '')
    )
    return jsonify({'message': 'Playlist created', 'playlistId': playlist_id})


@playlists_bp.route('/playlists/<playlist_id>/songs', methods=['POST'])
@require_auth
def add_song_to_playlist(playlist_id):
    """
    Request body:
        {"songId": "..."}

    Returns:
        200: {"message", "added": bool}
        400: Missing songId
        404: Song or playlist not found
    """
    data = request.get_json(silent=True) or {}
    added = current_catalog().playlists.add_song(
        g.current_user.subject_id,
        playlist_id,
        data.get('songId')
    )
    message = 'Song added to playlist' if added else 'Song already in playlist'
    return jsonify({'message': message, 'added': added})
