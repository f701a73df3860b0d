from datetime import datetime, timezone

import pytest

from errors import BatchCommitError
from models import ArtistIdentity, Song
from search_index import SearchIndexMaintainer


def seed(store):
    uploaded = datetime(2024, 1, 1, tzinfo=timezone.utc)
    store.add_song(Song(id='song-1', title='  Happier ', search_title='', uploaded_at=uploaded))
    store.add_song(Song(id='song-2', title='Hello', search_title='hello', uploaded_at=uploaded))
    store.add_artist(ArtistIdentity(doc_key='artist-0000001', id='artist-0000001', name='Bastille',
                                    canonical_key=None, search_name='Bastille'))
    store.add_artist(ArtistIdentity(doc_key='artist-0000002', id='artist-0000002', name='Adele',
                                    canonical_key='adele', search_name='adele'))


def test_backfill_updates_only_changed_rows(store):
    seed(store)

    report = SearchIndexMaintainer(store).backfill_search_fields()

    assert report.songs_scanned == 2
    assert report.songs_updated == 1
    assert report.artists_scanned == 2
    assert report.artists_updated == 1
    assert store.songs['song-1'].search_title == 'happier'
    assert store.artists['artist-0000001'].search_name == 'bastille'
    assert store.artists['artist-0000001'].canonical_key == 'bastille'


def test_backfill_twice_writes_nothing_the_second_time(store):
    seed(store)
    maintainer = SearchIndexMaintainer(store)
    maintainer.backfill_search_fields()
    writes_after_first = len(store.writes)

    report = maintainer.backfill_search_fields()

    assert report.songs_updated == 0
    assert report.artists_updated == 0
    assert len(store.writes) == writes_after_first


def test_backfill_skips_artists_without_string_name(store):
    store.add_artist(ArtistIdentity(doc_key='artist-0000003', id='artist-0000003', name=None))

    report = SearchIndexMaintainer(store).backfill_search_fields()

    assert report.artists_scanned == 0
    assert store.artists['artist-0000003'].search_name is None


def test_backfill_artist_stage_failure_reports_song_progress(store):
    seed(store)
    store.failing.add('commit_artist_search_fields')

    with pytest.raises(BatchCommitError) as excinfo:
        SearchIndexMaintainer(store).backfill_search_fields()

    assert excinfo.value.stage == 'artists'
    assert excinfo.value.report.songs_updated == 1
    assert store.songs['song-1'].search_title == 'happier'
    assert store.artists['artist-0000001'].search_name == 'Bastille'
