import pytest

from artist_directory import ArtistDirectory
from catalog_query import CatalogQuery, SearchStrictness
from errors import UpstreamUnavailable
from models import RESULT_TYPE_ARTIST, RESULT_TYPE_SONG, UNKNOWN_ARTIST, ArtistIdentity
from song_catalog import SongCatalog


def build(store, ids, clock, strictness=SearchStrictness.BEST_EFFORT):
    directory = ArtistDirectory(store, id_factory=ids, clock=clock)
    songs = SongCatalog(store, directory, id_factory=ids, clock=clock)
    return songs, CatalogQuery(songs, directory, strictness)


@pytest.fixture
def seeded(store, ids, clock):
    songs, query = build(store, ids, clock)
    songs.ingest('Happier', ['Marshmello', 'Bastille'], 'Pop', 'u1', file_name='1.mp3')
    songs.ingest('Bad Guy', ['Billie Eilish'], 'Pop', 'u2', file_name='2.mp3')
    songs.ingest('Bang Bang', ['Jessie J'], 'Pop', 'u3', file_name='3.mp3')
    return query


def test_empty_query_returns_nothing(seeded):
    assert seeded.search('') == []
    assert seeded.search('   ') == []


def test_songs_precede_artists(seeded):
    results = seeded.search('ba')

    assert [(r.type, r.title) for r in results] == [
        (RESULT_TYPE_SONG, 'Bad Guy'),
        (RESULT_TYPE_SONG, 'Bang Bang'),
        (RESULT_TYPE_ARTIST, 'Bastille'),
    ]


def test_search_ignores_case_and_whitespace(seeded):
    assert [r.title for r in seeded.search('  HAPP ')] == ['Happier']


def test_artist_result_shape(seeded):
    artist = seeded.search('bastille')[0]

    assert artist.type == RESULT_TYPE_ARTIST
    assert artist.artist_names == ['Bastille']
    assert artist.url == ''
    assert artist.duration == 0


def test_artist_result_without_name_uses_placeholder(store, ids, clock):
    _, query = build(store, ids, clock)
    store.add_artist(ArtistIdentity(doc_key='artist-0000009', id='artist-0000009', name=None,
                                    canonical_key=None, search_name='zed'))

    result = query.search('zed')[0]

    assert result.title == UNKNOWN_ARTIST
    assert result.artist_names == [UNKNOWN_ARTIST]
    assert result.artwork == ''


def test_artist_failure_is_tolerated_in_best_effort(store, seeded):
    store.failing.add('artists_in_search_range')

    results = seeded.search('ba')

    assert [r.type for r in results] == [RESULT_TYPE_SONG, RESULT_TYPE_SONG]


def test_artist_failure_raises_in_fail_fast(store, ids, clock):
    _, query = build(store, ids, clock, strictness='fail_fast')
    store.failing.add('artists_in_search_range')

    with pytest.raises(UpstreamUnavailable):
        query.search('ba')


def test_song_failure_always_raises(store, seeded):
    store.failing.add('songs_in_search_range')

    with pytest.raises(UpstreamUnavailable):
        seeded.search('ba')


def test_strictness_parse():
    assert SearchStrictness.parse('FAIL_FAST') is SearchStrictness.FAIL_FAST
    assert SearchStrictness.parse(None) is SearchStrictness.BEST_EFFORT
    assert SearchStrictness.parse('bogus') is SearchStrictness.BEST_EFFORT


def test_prefix_matches_characters_above_the_private_use_area(store, ids, clock):
    songs, query = build(store, ids, clock)
    songs.ingest('ok！', ['Band'], 'Pop', 'u1', file_name='1.mp3')
    songs.ingest('ok\U0001F600', ['Band'], 'Pop', 'u2', file_name='2.mp3')
    songs.ingest('ol', ['Band'], 'Pop', 'u3', file_name='3.mp3')

    titles = [r.title for r in query.search('ok') if r.type == RESULT_TYPE_SONG]

    assert titles == ['ok！', 'ok\U0001F600']


def test_artist_result_falls_back_to_doc_key(store, ids, clock):
    _, query = build(store, ids, clock)
    store.add_artist(ArtistIdentity(doc_key='legacy-doc-key', id=None, name='Queen',
                                    canonical_key='queen', search_name='queen'))

    assert query.search('que')[0].id == 'legacy-doc-key'
