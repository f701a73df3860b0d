"""
Song Catalog

Owns song records. Each song references its artists by stable id
(artist_ids) alongside the display names submitted at upload
(artist_names, parallel to artist_ids), and stores search_title, the
normalized title used for prefix search.
"""

import logging
import uuid

from errors import NotFound, ValidationError
from models import Song, SearchResult, UNKNOWN_ARTIST, UNKNOWN_GENRE, utc_now
from normalization import normalize, prefix_bounds
from utils.helpers import safe_strip

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_USER = 'admin'


class SongCatalog:

    def __init__(self, store, artist_directory, id_factory=None, clock=None):
        self.store = store
        self.artists = artist_directory
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.clock = clock or utc_now

    def ingest(self, title, artist_names, genre, file_url, cover_url='',
               upload_user='', file_name='', created_year=None, duration=0):
        """
        Create a song, resolving (or creating) an identity for each artist

        Args:
            title: Song title; falls back to file_name when blank
            artist_names: Display names in credit order; blanks are skipped
                and an empty list becomes ["Unknown Artist"]
            genre: Genre; blank becomes "Unknown"
            file_url: Locator of the stored audio object
            cover_url: Optional artwork locator
            upload_user: Uploader tag; blank becomes "admin"
            file_name: Object key of the uploaded file
            created_year: Release year; defaults to the current year
            duration: Duration in seconds

        Returns:
            New song id
        """
        file_name = safe_strip(file_name)
        title = safe_strip(title) or file_name
        if not title:
            raise ValidationError('Filename is required')

        names = [name.strip() for name in (artist_names or []) if name and name.strip()]
        if not names:
            names = [UNKNOWN_ARTIST]

        logger.info(f"Starting artist processing for '{title}': {names}")
        artist_ids = [self.artists.resolve_or_create(name, best_effort=True) for name in names]

        now = self.clock()
        song = Song(
            id=self.id_factory(),
            title=title,
            search_title=normalize(title),
            artist_names=names,
            artist_ids=artist_ids,
            file_name=file_name or '',
            file_url=file_url or '',
            cover_url=safe_strip(cover_url) or '',
            duration=duration or 0,
            genre=safe_strip(genre) or UNKNOWN_GENRE,
            likes=0,
            downloads=0,
            play_count=0,
            created_year=str(safe_strip(created_year) or now.year),
            upload_user=safe_strip(upload_user) or DEFAULT_UPLOAD_USER,
            uploaded_at=now,
        )
        self.store.insert_song(song)

        logger.info(f"Song saved: {song.title} ({song.id}) with {len(artist_ids)} artist(s)")
        return song.id

    def get(self, song_id):
        song = self.store.get_song(song_id)
        if song is None:
            raise NotFound('Song not found', song_id=song_id)
        return song

    def list_all(self):
        """All songs, newest upload first"""
        songs = self.store.list_songs()
        logger.info(f"Fetched {len(songs)} songs")
        return songs

    def list_by_artist(self, artist_id):
        """Songs whose artist_ids contain artist_id, newest upload first"""
        artist_id = safe_strip(artist_id)
        if not artist_id:
            raise ValidationError('Artist ID is required.')
        return self.store.list_songs_by_artist(artist_id)

    def update_title(self, song_id, title):
        """Retitle a song, keeping search_title in step"""
        title = safe_strip(title)
        if not title:
            raise ValidationError('Title is required')
        if not self.store.update_song_title(song_id, title, normalize(title)):
            raise NotFound('Song not found', song_id=song_id)
        logger.info(f"Song {song_id} retitled to '{title}'")

    def prefix_search(self, query):
        """Songs whose search_title starts with the normalized query, as SearchResults"""
        bounds = prefix_bounds(query)
        if bounds is None:
            return []
        return [SearchResult.from_song(song) for song in self.store.songs_in_search_range(*bounds)]
