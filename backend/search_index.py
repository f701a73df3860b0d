"""
Search Index Maintainer

Backfills the denormalized search keys from their display fields:
    songs.search_title   = normalize(title)
    artists.search_name  = normalize(name)
    artists.canonical_key = normalize(name)

Only rows whose stored value differs are written, so a second run with no
intervening edits writes nothing. Songs and artists are committed as two
separate atomic batches, songs first.
"""

import logging

from errors import BatchCommitError, UpstreamUnavailable
from models import BackfillReport
from normalization import normalize

logger = logging.getLogger(__name__)


class SearchIndexMaintainer:

    def __init__(self, store):
        self.store = store

    def backfill_search_fields(self):
        """
        Recompute search keys across both collections

        Returns:
            BackfillReport (updated = values changed, scanned = rows examined)

        Raises:
            BatchCommitError: If either stage fails to load or commit
        """
        report = BackfillReport()
        logger.info("Starting search field normalization...")

        try:
            songs = self.store.list_songs()
            song_updates = []
            for song in songs:
                if not isinstance(song.title, str):
                    continue
                report.songs_scanned += 1
                search_title = normalize(song.title)
                if song.search_title != search_title:
                    song_updates.append((song.id, search_title))
            self.store.commit_song_search_fields(song_updates)
            report.songs_updated = len(song_updates)
        except UpstreamUnavailable as e:
            raise BatchCommitError('songs', e.message, report) from e

        logger.info(f"Song titles normalized: {report.songs_updated} of {report.songs_scanned} changed")

        try:
            artists = self.store.list_artists()
            artist_updates = []
            for artist in artists:
                if not isinstance(artist.name, str):
                    continue
                report.artists_scanned += 1
                key = normalize(artist.name)
                if artist.search_name != key or artist.canonical_key != key:
                    artist_updates.append((artist.doc_key, key, key))
            self.store.commit_artist_search_fields(artist_updates)
            report.artists_updated = len(artist_updates)
        except UpstreamUnavailable as e:
            raise BatchCommitError('artists', e.message, report) from e

        logger.info(f"Artist names normalized: {report.artists_updated} of {report.artists_scanned} changed")
        return report
