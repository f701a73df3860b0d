from datetime import datetime, timezone

import pytest

from errors import NotFound, ValidationError
from models import Song
from playlist_store import PlaylistStore


@pytest.fixture
def playlists(store, ids, clock):
    store.add_song(Song(id='song-1', title='Happier', search_title='happier', likes=3,
                        uploaded_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))
    return PlaylistStore(store, id_factory=ids, clock=clock)


def test_create_and_list(playlists):
    first = playlists.create('user-1', 'Road trip', 'Summer')
    second = playlists.create('user-1', 'Gym')
    playlists.create('user-2', 'Other')

    owned = playlists.list_for_user('user-1')

    assert [p.id for p in owned] == [second, first]
    assert owned[1].description == 'Summer'
    assert owned[1].songs == []


def test_create_requires_name(playlists):
    with pytest.raises(ValidationError):
        playlists.create('user-1', '  ')


def test_add_song_snapshots_song(playlists, store):
    playlist_id = playlists.create('user-1', 'Road trip')

    assert playlists.add_song('user-1', playlist_id, 'song-1') is True

    entry = store.playlists[playlist_id].songs[0]
    assert entry['songId'] == 'song-1'
    assert entry['song']['title'] == 'Happier'
    assert entry['song']['likes'] == 3
    assert isinstance(entry['addedAt'], int)


def test_add_song_is_deduplicated_by_song_id(playlists, store):
    playlist_id = playlists.create('user-1', 'Road trip')
    playlists.add_song('user-1', playlist_id, 'song-1')
    store.songs['song-1'].likes = 99

    assert playlists.add_song('user-1', playlist_id, 'song-1') is False
    assert len(store.playlists[playlist_id].songs) == 1


def test_add_song_errors(playlists):
    playlist_id = playlists.create('user-1', 'Road trip')

    with pytest.raises(ValidationError):
        playlists.add_song('user-1', playlist_id, '')
    with pytest.raises(NotFound):
        playlists.add_song('user-1', playlist_id, 'missing-song')
    with pytest.raises(NotFound):
        playlists.add_song('user-2', playlist_id, 'song-1')
