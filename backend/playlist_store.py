"""
Playlist Store

Per-user playlists holding immutable song snapshots. Entries are keyed by
songId: adding a song already in the playlist is a no-op, whatever its
counters or other fields have done since.
"""

import logging
import uuid

from errors import NotFound, ValidationError
from models import Playlist, playlist_entry, utc_now
from utils.helpers import safe_strip

logger = logging.getLogger(__name__)


class PlaylistStore:

    def __init__(self, store, id_factory=None, clock=None):
        self.store = store
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.clock = clock or utc_now

    def create(self, user_id, name, description=''):
        """
        Create an empty playlist for a user

        Returns:
            New playlist id
        """
        name = safe_strip(name)
        if not name:
            raise ValidationError('Playlist name is required')

        playlist = Playlist(
            id=self.id_factory(),
            user_id=user_id,
            name=name,
            description=description or '',
            songs=[],
            created_at=self.clock(),
        )
        self.store.create_playlist(playlist)
        logger.info(f"Playlist created: {playlist.id} for user {user_id}")
        return playlist.id

    def list_for_user(self, user_id):
        """Playlists owned by user_id, newest first"""
        return self.store.list_playlists(user_id)

    def add_song(self, user_id, playlist_id, song_id):
        """
        Snapshot a song into a playlist

        Returns:
            True if added, False if the song was already in the playlist

        Raises:
            ValidationError: If song_id is missing
            NotFound: If the song or the playlist does not exist
        """
        song_id = safe_strip(song_id)
        if not song_id:
            raise ValidationError('songId is required')

        song = self.store.get_song(song_id)
        if song is None:
            raise NotFound('Song not found', song_id=song_id)

        added = self.store.add_playlist_entry(user_id, playlist_id, playlist_entry(song, self.clock()))
        if added is None:
            raise NotFound('Playlist not found', playlist_id=playlist_id)

        if added:
            logger.info(f"Song {song_id} added to playlist {playlist_id}")
        else:
            logger.info(f"Song {song_id} already in playlist {playlist_id}")
        return added
