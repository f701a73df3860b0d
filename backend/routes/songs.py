# routes/songs.py
"""
Song API Routes

All song-related endpoints:
- POST /upload                  - store audio in object storage and catalog it
- GET  /stream-url?file=...     - signed, time-limited URL for a stored file
- GET  /songs                   - all songs, newest first
- PATCH /songs/<song_id>        - retitle a song
- GET  /songs-by-artist?artistId=...
"""
import logging
import posixpath
from urllib.parse import urlparse, unquote

from flask import Blueprint, jsonify, request

from catalog import current_catalog
from errors import ValidationError
from middleware.auth_middleware import require_auth
from utils.helpers import safe_strip

logger = logging.getLogger(__name__)
songs_bp = Blueprint('songs', __name__)


@songs_bp.route('/upload', methods=['POST'])
@require_auth
def upload_song():
    """
    Upload an audio file and register it in the catalog

    Form fields:
        file (required), title, artists (repeatable), genre, createdYear,
        upload_user, coverUrl

    Returns:
        200: {"message", "songId", "publicUrl", "signedUrl", "filename"}
        400: Missing file
        502: Storage or database unavailable
    """
    upload = request.files.get('file')
    if upload is None:
        raise ValidationError('Failed to get file: no file part in request')

    filename = safe_strip(upload.filename)
    if not filename:
        raise ValidationError('Filename is required')

    data = upload.read()
    artist_names = request.form.getlist('artists')
    logger.info(f"Uploading file: {filename}, size: {len(data)} bytes, artists: {artist_names}")

    catalog = current_catalog()
    public_url = catalog.storage.put_object(filename, data)
    signed_url = catalog.storage.get_signed_url(filename, catalog.settings.signed_url_ttl)

    song_id = catalog.songs.ingest(
        title=request.form.get('title'),
        artist_names=artist_names,
        genre=request.form.get('genre'),
        file_url=public_url,
        cover_url=request.form.get('coverUrl'),
        upload_user=request.form.get('upload_user'),
        file_name=filename,
        created_year=request.form.get('createdYear'),
    )

    return jsonify({
        'message': 'File uploaded successfully',
        'songId': song_id,
        'publicUrl': public_url,
        'signedUrl': signed_url,
        'filename': filename,
    })


@songs_bp.route('/stream-url', methods=['GET'])
def get_stream_url():
    """
    Sign a stored file for streaming

    Query params:
        file: Full public locator (or bare key); the object key is the
            last path segment

    Returns:
        200: {"url": "..."}
        400: Missing or unusable locator
    """
    locator = safe_strip(request.args.get('file'))
    if not locator:
        raise ValidationError('File URL is required.')

    object_key = unquote(posixpath.basename(urlparse(locator).path))
    if not object_key:
        raise ValidationError('Could not determine file key from URL path.')

    catalog = current_catalog()
    url = catalog.storage.get_signed_url(object_key, catalog.settings.signed_url_ttl)
    return jsonify({'url': url})


@songs_bp.route('/songs', methods=['GET'])
def get_songs():
    """All songs, newest upload first"""
    songs = current_catalog().songs.list_all()
    return jsonify({'songs': [song.to_dict() for song in songs]})


@songs_bp.route('/songs/<song_id>', methods=['PATCH'])
@require_auth
def update_song(song_id):
    """
    Retitle a song (search_title follows)

    Request body:
        {"title": "New Title"}
    """
    data = request.get_json(silent=True) or {}
    catalog = current_catalog()
    catalog.songs.update_title(song_id, data.get('title'))
    return jsonify({'message': 'Song updated', 'song': catalog.songs.get(song_id).to_dict()})


@songs_bp.route('/songs-by-artist', methods=['GET'])
def get_songs_by_artist():
    """Songs crediting ?artistId=..., newest first"""
    songs = current_catalog().songs.list_by_artist(request.args.get('artistId'))
    return jsonify({'songs': [song.to_dict() for song in songs]})
