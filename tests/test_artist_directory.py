from datetime import datetime, timezone

import pytest

from artist_directory import ArtistDirectory, is_stable_id
from errors import BatchCommitError, UpstreamUnavailable, ValidationError
from models import ArtistIdentity, Song, UNKNOWN_ARTIST


UPLOADED = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def directory(store, ids, clock):
    return ArtistDirectory(store, id_factory=ids, clock=clock)


def make_song(song_id, names, artist_ids, title='Song'):
    return Song(
        id=song_id,
        title=title,
        search_title=title.lower(),
        artist_names=list(names),
        artist_ids=list(artist_ids),
        uploaded_at=UPLOADED,
    )


def make_artist(doc_key, name, artist_id=None, canonical_key=None, search_name=None):
    return ArtistIdentity(
        doc_key=doc_key,
        id=artist_id if artist_id is not None else doc_key,
        name=name,
        canonical_key=canonical_key,
        search_name=search_name,
    )


# ============================================================================
# resolve_or_create
# ============================================================================

def test_resolve_creates_identity(directory, store):
    artist_id = directory.resolve_or_create('  Marshmello ')

    assert artist_id == 'generated-000001'
    created = store.artists[artist_id]
    assert created.id == artist_id
    assert created.name == 'Marshmello'
    assert created.canonical_key == 'marshmello'
    assert created.search_name == 'marshmello'
    assert created.bio == ''
    assert created.profile_image_url == ''
    assert created.created_at is not None


def test_resolve_is_case_insensitive(directory, store):
    first = directory.resolve_or_create('Bastille')
    second = directory.resolve_or_create('  BASTILLE')

    assert first == second
    assert len(store.artists) == 1
    assert store.artists[first].name == 'Bastille'


def test_sequential_resolves_share_one_identity(directory, store):
    names = ['Adele', 'adele', ' ADELE ', 'AdElE']
    resolved = {directory.resolve_or_create(name) for name in names}

    assert len(resolved) == 1
    assert len(store.artists) == 1


def test_resolve_matches_legacy_record_by_search_name(directory, store):
    store.add_artist(make_artist('legacy-artist-key', 'Queen', canonical_key=None, search_name='queen'))

    assert directory.resolve_or_create('queen') == 'legacy-artist-key'
    assert len(store.artists) == 1


def test_resolve_falls_back_to_doc_key_without_id(directory, store):
    store.add_artist(ArtistIdentity(doc_key='doc-key-12345', id=None, name='Muse', canonical_key='muse'))

    assert directory.resolve_or_create('Muse') == 'doc-key-12345'


@pytest.mark.parametrize('name', ['', '   ', None])
def test_resolve_rejects_blank_names(directory, store, name):
    with pytest.raises(ValidationError):
        directory.resolve_or_create(name)
    assert store.artists == {}


def test_resolve_lookup_failure_raises_by_default(directory, store):
    store.failing.add('find_artist_by_canonical_key')

    with pytest.raises(UpstreamUnavailable):
        directory.resolve_or_create('Adele')


def test_resolve_best_effort_returns_unlinked_id(directory, store):
    store.failing.add('find_artist_by_canonical_key')

    artist_id = directory.resolve_or_create('Adele', best_effort=True)

    assert artist_id == 'generated-000001'
    assert store.artists == {}


def test_resolve_best_effort_survives_insert_failure(directory, store):
    store.failing.add('insert_artist')

    assert directory.resolve_or_create('Adele', best_effort=True) == 'generated-000001'
    with pytest.raises(UpstreamUnavailable):
        directory.resolve_or_create('Adele')


def test_prefix_search_orders_by_search_name(directory, store):
    store.add_artist(make_artist('artist-0000001', 'Bastille', canonical_key='bastille', search_name='bastille'))
    store.add_artist(make_artist('artist-0000002', 'Bad Bunny', canonical_key='bad bunny', search_name='bad bunny'))
    store.add_artist(make_artist('artist-0000003', 'Adele', canonical_key='adele', search_name='adele'))

    hits = directory.prefix_search('  BA')

    assert [artist.name for artist in hits] == ['Bad Bunny', 'Bastille']
    assert directory.prefix_search('   ') == []


# ============================================================================
# reconcile
# ============================================================================

def test_reconcile_merges_duplicates_and_relinks_songs(directory, store):
    store.add_artist(make_artist('artist-aaaaaaaa', 'Adele', canonical_key='adele', search_name='adele'))
    store.add_artist(make_artist('artist-bbbbbbbb', 'ADELE', canonical_key='adele', search_name='adele'))
    store.add_song(make_song('song-1', ['Adele'], ['artist-aaaaaaaa']))
    store.add_song(make_song('song-2', ['adele'], ['artist-bbbbbbbb']))

    report = directory.reconcile()

    assert report.artists_stabilized == 1
    assert report.duplicates_deleted == 1
    assert report.malformed_deleted == 0
    assert report.songs_scanned == 2
    assert set(store.artists) == {'artist-aaaaaaaa'}
    assert store.songs['song-1'].artist_ids == ['artist-aaaaaaaa']
    assert store.songs['song-2'].artist_ids == ['artist-aaaaaaaa']
    assert report.songs_relinked == 1


def test_reconcile_deletes_malformed_artists(directory, store):
    store.add_artist(make_artist('artist-aaaaaaaa', None))
    store.add_artist(make_artist('artist-bbbbbbbb', '   '))
    store.add_artist(make_artist('artist-cccccccc', 'Adele'))

    report = directory.reconcile()

    assert report.malformed_deleted == 2
    assert set(store.artists) == {'artist-cccccccc'}
    assert store.artists['artist-cccccccc'].canonical_key == 'adele'


def test_reconcile_replaces_legacy_short_ids(directory, store):
    store.add_artist(make_artist('a1', 'Queen'))
    store.add_song(make_song('song-1', ['Queen'], ['a1']))

    report = directory.reconcile()

    assert report.legacy_ids_replaced == 1
    new_id = store.artists['a1'].id
    assert is_stable_id(new_id)
    assert store.songs['song-1'].artist_ids == [new_id]


def test_reconcile_keeps_stable_id_over_doc_key(directory, store):
    store.add_artist(make_artist('a1', 'Queen', artist_id='queen-stable-id'))

    directory.reconcile()

    assert store.artists['a1'].id == 'queen-stable-id'


def test_reconcile_creates_identities_for_orphaned_names(directory, store):
    store.add_song(make_song('song-1', ['Ghost Band'], ['missing-id-1']))
    store.add_song(make_song('song-2', ['ghost band', 'Other'], ['missing-id-2', 'missing-id-3']))

    report = directory.reconcile()

    assert report.artists_created == 2
    ghost_id = store.songs['song-1'].artist_ids[0]
    assert store.songs['song-2'].artist_ids[0] == ghost_id
    assert store.artists[ghost_id].canonical_key == 'ghost band'
    assert store.artists[ghost_id].name == 'Ghost Band'


def test_reconcile_fills_empty_artist_names(directory, store):
    store.add_song(make_song('song-1', [], []))

    report = directory.reconcile()

    song = store.songs['song-1']
    assert song.artist_names == [UNKNOWN_ARTIST]
    assert len(song.artist_ids) == 1
    assert report.songs_updated_count == 1
    assert report.songs_relinked == 1


def test_reconcile_length_counter_ignores_same_length_changes(directory, store):
    store.add_artist(make_artist('artist-aaaaaaaa', 'Adele'))
    store.add_song(make_song('song-1', ['Adele'], ['stale-artist-id']))

    report = directory.reconcile()

    assert report.songs_updated_count == 0
    assert report.songs_relinked == 1
    assert store.songs['song-1'].artist_ids == ['artist-aaaaaaaa']


def test_reconcile_is_idempotent(directory, store):
    store.add_artist(make_artist('a1', 'Queen'))
    store.add_artist(make_artist('artist-bbbbbbbb', 'queen'))
    store.add_song(make_song('song-1', ['Queen', 'Orphan'], ['a1', 'x']))

    directory.reconcile()
    artists_after_first = {key: (a.id, a.name, a.canonical_key) for key, a in store.artists.items()}
    songs_after_first = {key: (s.artist_ids, s.artist_names) for key, s in store.songs.items()}

    report = directory.reconcile()

    assert report.duplicates_deleted == 0
    assert report.malformed_deleted == 0
    assert report.legacy_ids_replaced == 0
    assert report.artists_created == 0
    assert report.songs_relinked == 0
    assert {key: (a.id, a.name, a.canonical_key) for key, a in store.artists.items()} == artists_after_first
    assert {key: (s.artist_ids, s.artist_names) for key, s in store.songs.items()} == songs_after_first


def test_reconcile_dry_run_writes_nothing(directory, store):
    store.add_artist(make_artist('artist-aaaaaaaa', 'Adele'))
    store.add_artist(make_artist('artist-bbbbbbbb', 'adele'))
    store.add_song(make_song('song-1', ['Adele'], ['artist-bbbbbbbb']))

    report = directory.reconcile(dry_run=True)

    assert report.dry_run is True
    assert report.duplicates_deleted == 1
    assert report.songs_relinked == 1
    assert store.writes == []
    assert set(store.artists) == {'artist-aaaaaaaa', 'artist-bbbbbbbb'}
    assert store.songs['song-1'].artist_ids == ['artist-bbbbbbbb']


def test_reconcile_song_stage_failure_keeps_artist_stage(directory, store):
    store.add_artist(make_artist('artist-aaaaaaaa', 'Adele'))
    store.add_artist(make_artist('artist-bbbbbbbb', 'adele'))
    store.add_song(make_song('song-1', ['Adele'], ['artist-bbbbbbbb']))
    store.failing.add('commit_song_stage')

    with pytest.raises(BatchCommitError) as excinfo:
        directory.reconcile()

    assert excinfo.value.stage == 'songs'
    assert excinfo.value.report.duplicates_deleted == 1
    assert excinfo.value.to_dict()['partial']['duplicates_deleted'] == 1
    assert set(store.artists) == {'artist-aaaaaaaa'}
    assert store.songs['song-1'].artist_ids == ['artist-bbbbbbbb']


def test_reconcile_artist_stage_failure_stops_before_songs(directory, store):
    store.add_artist(make_artist('artist-aaaaaaaa', 'Adele'))
    store.failing.add('commit_artist_stage')

    with pytest.raises(BatchCommitError) as excinfo:
        directory.reconcile()

    assert excinfo.value.stage == 'artists'
    assert excinfo.value.status_code == 502
    assert store.writes == []


def test_reconcile_blank_names_get_distinct_ids(directory, store):
    store.add_song(make_song('song-1', ['  '], ['x1']))
    store.add_song(make_song('song-2', [''], ['x2']))

    report = directory.reconcile()

    first = store.songs['song-1'].artist_ids
    second = store.songs['song-2'].artist_ids
    assert len(first) == len(second) == 1
    assert first != second
    assert report.artists_created == 0
    assert store.artists == {}
