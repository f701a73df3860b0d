"""
Catalog Store - document-style access to the catalog tables

All SQL for artists, songs, users and playlists lives here. Services above
this layer never touch cursors; they call these methods and receive model
objects. Any psycopg.Error leaving this module is re-raised as
UpstreamUnavailable with the original error chained.

Batch methods (commit_*) run every statement inside one
get_db_connection() block, so each call is a single atomic transaction.
"""

import logging
from functools import wraps

import psycopg
from psycopg.types.json import Jsonb

from db_utils import get_db_connection
from errors import UpstreamUnavailable
from models import ArtistIdentity, Song, Playlist

logger = logging.getLogger(__name__)


ARTIST_COLUMNS = "doc_key, id, name, canonical_key, search_name, bio, profile_image_url, created_at"

SONG_COLUMNS = """
    id, title, search_title, artist_names, artist_ids, file_name, file_url,
    cover_url, duration, genre, likes, downloads, play_count, created_year,
    upload_user, uploaded_at
"""


def _store_call(func):
    """Translate database failures into UpstreamUnavailable"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except psycopg.Error as e:
            logger.error(f"Catalog store error in {func.__name__}: {e}")
            raise UpstreamUnavailable('Catalog database unavailable', cause=str(e)) from e
    return wrapper


class CatalogStore:
    """PostgreSQL-backed store for the catalog collections"""

    # ========================================================================
    # ARTISTS
    # ========================================================================

    @_store_call
    def find_artist_by_canonical_key(self, canonical_key):
        """Rows written before canonical_key existed are matched on search_name"""
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {ARTIST_COLUMNS}
                    FROM artists
                    WHERE canonical_key = %s
                       OR (canonical_key IS NULL AND search_name = %s)
                    ORDER BY doc_key
                    LIMIT 1
                """, (canonical_key, canonical_key))
                row = cur.fetchone()
        return ArtistIdentity.from_row(row) if row else None

    @_store_call
    def insert_artist(self, artist):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    INSERT INTO artists ({ARTIST_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """, _artist_params(artist))

    @_store_call
    def list_artists(self):
        """All artist documents in a fixed order (by document key)"""
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {ARTIST_COLUMNS} FROM artists ORDER BY doc_key")
                rows = cur.fetchall()
        return [ArtistIdentity.from_row(row) for row in rows]

    @_store_call
    def artists_in_search_range(self, start, end):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {ARTIST_COLUMNS}
                    FROM artists
                    WHERE search_name COLLATE "C" >= %s
                      AND search_name COLLATE "C" < %s
                    ORDER BY search_name COLLATE "C" ASC
                """, (start, end))
                rows = cur.fetchall()
        return [ArtistIdentity.from_row(row) for row in rows]

    @_store_call
    def commit_artist_stage(self, deletes, upserts):
        """
        Delete duplicate/malformed artists and upsert canonical ones atomically

        Args:
            deletes: List of doc_keys to delete
            upserts: List of ArtistIdentity; id, name, canonical_key and
                created_at are merged onto the existing document
        """
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                if deletes:
                    cur.execute("DELETE FROM artists WHERE doc_key = ANY(%s)", (list(deletes),))
                if upserts:
                    cur.executemany(f"""
                        INSERT INTO artists ({ARTIST_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (doc_key) DO UPDATE
                        SET id = EXCLUDED.id,
                            name = EXCLUDED.name,
                            canonical_key = EXCLUDED.canonical_key,
                            created_at = EXCLUDED.created_at
                    """, [_artist_params(artist) for artist in upserts])

    @_store_call
    def commit_artist_search_fields(self, updates):
        """updates: list of (doc_key, search_name, canonical_key)"""
        if not updates:
            return
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany("""
                    UPDATE artists
                    SET search_name = %s,
                        canonical_key = %s
                    WHERE doc_key = %s
                """, [(search_name, canonical_key, doc_key)
                      for doc_key, search_name, canonical_key in updates])

    # ========================================================================
    # SONGS
    # ========================================================================

    @_store_call
    def insert_song(self, song):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    INSERT INTO songs ({SONG_COLUMNS})
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s,
                            %s, %s, %s, %s, %s, %s, %s, %s)
                """, (
                    song.id, song.title, song.search_title,
                    list(song.artist_names), list(song.artist_ids),
                    song.file_name, song.file_url, song.cover_url,
                    song.duration, song.genre, song.likes, song.downloads,
                    song.play_count, song.created_year, song.upload_user,
                    song.uploaded_at,
                ))

    @_store_call
    def get_song(self, song_id):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {SONG_COLUMNS} FROM songs WHERE id = %s", (song_id,))
                row = cur.fetchone()
        return Song.from_row(row) if row else None

    @_store_call
    def list_songs(self):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {SONG_COLUMNS} FROM songs ORDER BY uploaded_at DESC")
                rows = cur.fetchall()
        return [Song.from_row(row) for row in rows]

    @_store_call
    def list_songs_by_artist(self, artist_id):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {SONG_COLUMNS}
                    FROM songs
                    WHERE %s = ANY(artist_ids)
                    ORDER BY uploaded_at DESC
                """, (artist_id,))
                rows = cur.fetchall()
        return [Song.from_row(row) for row in rows]

    @_store_call
    def songs_in_search_range(self, start, end):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {SONG_COLUMNS}
                    FROM songs
                    WHERE search_title COLLATE "C" >= %s
                      AND search_title COLLATE "C" < %s
                    ORDER BY search_title COLLATE "C" ASC
                """, (start, end))
                rows = cur.fetchall()
        return [Song.from_row(row) for row in rows]

    @_store_call
    def update_song_title(self, song_id, title, search_title):
        """Returns True if the song existed"""
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    UPDATE songs
                    SET title = %s,
                        search_title = %s
                    WHERE id = %s
                """, (title, search_title, song_id))
                return cur.rowcount > 0

    @_store_call
    def commit_song_stage(self, updates, new_artists=()):
        """
        Rewrite song artist references atomically

        Args:
            updates: List of (song_id, artist_ids, artist_names)
            new_artists: ArtistIdentity records minted for orphaned names,
                inserted in the same transaction
        """
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                if new_artists:
                    cur.executemany(f"""
                        INSERT INTO artists ({ARTIST_COLUMNS})
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    """, [_artist_params(artist) for artist in new_artists])
                if updates:
                    cur.executemany("""
                        UPDATE songs
                        SET artist_ids = %s,
                            artist_names = %s
                        WHERE id = %s
                    """, [(list(artist_ids), list(artist_names), song_id)
                          for song_id, artist_ids, artist_names in updates])

    @_store_call
    def commit_song_search_fields(self, updates):
        """updates: list of (song_id, search_title)"""
        if not updates:
            return
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(
                    "UPDATE songs SET search_title = %s WHERE id = %s",
                    [(search_title, song_id) for song_id, search_title in updates]
                )

    # ========================================================================
    # USERS
    # ========================================================================

    @_store_call
    def get_user(self, uid):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT uid, email, display_name, phone_number, created_at
                    FROM users
                    WHERE uid = %s
                """, (uid,))
                return cur.fetchone()

    @_store_call
    def create_user_if_absent(self, uid, email, display_name, phone_number, created_at):
        """Returns True if a new user row was created"""
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO users (uid, email, display_name, phone_number, created_at)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (uid) DO NOTHING
                """, (uid, email, display_name, phone_number, created_at))
                return cur.rowcount > 0

    # ========================================================================
    # PLAYLISTS
    # ========================================================================

    @_store_call
    def create_playlist(self, playlist):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO playlists (id, user_id, name, description, songs, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (playlist.id, playlist.user_id, playlist.name,
                      playlist.description, Jsonb(list(playlist.songs)),
                      playlist.created_at))

    @_store_call
    def list_playlists(self, user_id):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT id, user_id, name, description, songs, created_at
                    FROM playlists
                    WHERE user_id = %s
                    ORDER BY created_at DESC
                """, (user_id,))
                rows = cur.fetchall()
        return [Playlist.from_row(row) for row in rows]

    @_store_call
    def get_playlist(self, user_id, playlist_id):
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT id, user_id, name, description, songs, created_at
                    FROM playlists
                    WHERE id = %s AND user_id = %s
                """, (playlist_id, user_id))
                row = cur.fetchone()
        return Playlist.from_row(row) if row else None

    @_store_call
    def add_playlist_entry(self, user_id, playlist_id, entry):
        """
        Append an entry unless the playlist already holds that songId

        Returns:
            True if appended, False if already present, None if the
            playlist does not exist for this user
        """
        with get_db_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    UPDATE playlists
                    SET songs = songs || %s
                    WHERE id = %s
                      AND user_id = %s
                      AND NOT songs @> %s
                """, (Jsonb([entry]), playlist_id, user_id,
                      Jsonb([{'songId': entry['songId']}])))
                if cur.rowcount > 0:
                    return True

                cur.execute(
                    "SELECT 1 AS found FROM playlists WHERE id = %s AND user_id = %s",
                    (playlist_id, user_id)
                )
                return False if cur.fetchone() else None


def _artist_params(artist):
    return (
        artist.doc_key, artist.id, artist.name, artist.canonical_key,
        artist.search_name, artist.bio, artist.profile_image_url,
        artist.created_at,
    )
