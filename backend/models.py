"""
Catalog data model

Row <-> API mapping for artists, songs, playlists and search results.
Database rows use snake_case columns; API payloads use the camelCase keys
clients already consume (artistNames, fileUrl, uploadedAt, ...).
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

UNKNOWN_ARTIST = 'Unknown Artist'
UNKNOWN_GENRE = 'Unknown'

RESULT_TYPE_SONG = 'song'
RESULT_TYPE_ARTIST = 'artist'


def utc_now():
    return datetime.now(timezone.utc)


def to_unix(value):
    """Datetime -> unix seconds; other values pass through"""
    if isinstance(value, datetime):
        return int(value.timestamp())
    return value


@dataclass
class ArtistIdentity:
    """Stable artist identity; doc_key is the storage key, id is what songs reference"""
    doc_key: str
    id: Optional[str]
    name: Optional[str]
    canonical_key: Optional[str] = None
    search_name: Optional[str] = None
    bio: str = ''
    profile_image_url: str = ''
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            doc_key=row['doc_key'],
            id=row.get('id'),
            name=row.get('name'),
            canonical_key=row.get('canonical_key'),
            search_name=row.get('search_name'),
            bio=row.get('bio') or '',
            profile_image_url=row.get('profile_image_url') or '',
            created_at=row.get('created_at'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'searchName': self.search_name,
            'bio': self.bio,
            'profileImageUrl': self.profile_image_url,
            'createdAt': to_unix(self.created_at),
        }


@dataclass
class Song:
    id: str
    title: str
    search_title: str
    artist_names: list = field(default_factory=list)
    artist_ids: list = field(default_factory=list)
    file_name: str = ''
    file_url: str = ''
    cover_url: str = ''
    duration: int = 0
    genre: str = UNKNOWN_GENRE
    likes: int = 0
    downloads: int = 0
    play_count: int = 0
    created_year: str = ''
    upload_user: str = ''
    uploaded_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            title=row.get('title') or '',
            search_title=row.get('search_title') or '',
            artist_names=list(row.get('artist_names') or []),
            artist_ids=list(row.get('artist_ids') or []),
            file_name=row.get('file_name') or '',
            file_url=row.get('file_url') or '',
            cover_url=row.get('cover_url') or '',
            duration=row.get('duration') or 0,
            genre=row.get('genre') or UNKNOWN_GENRE,
            likes=row.get('likes') or 0,
            downloads=row.get('downloads') or 0,
            play_count=row.get('play_count') or 0,
            created_year=row.get('created_year') or '',
            upload_user=row.get('upload_user') or '',
            uploaded_at=row.get('uploaded_at'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'searchTitle': self.search_title,
            'artistNames': list(self.artist_names),
            'artistIds': list(self.artist_ids),
            'fileName': self.file_name,
            'fileUrl': self.file_url,
            'coverUrl': self.cover_url,
            'duration': self.duration,
            'genre': self.genre,
            'likes': self.likes,
            'downloads': self.downloads,
            'playCount': self.play_count,
            'createdYear': self.created_year,
            'upload_user': self.upload_user,
            'uploadedAt': to_unix(self.uploaded_at),
        }


@dataclass
class SearchResult:
    """Unified search hit for the client: a song or an artist"""
    id: str
    title: str
    artist_names: list
    artwork: str
    url: str
    duration: int
    type: str

    @classmethod
    def from_song(cls, song):
        return cls(
            id=song.id,
            title=song.title,
            artist_names=list(song.artist_names),
            artwork=song.cover_url,
            url=song.file_url,
            duration=song.duration,
            type=RESULT_TYPE_SONG,
        )

    @classmethod
    def from_artist(cls, artist):
        name = artist.name or UNKNOWN_ARTIST
        return cls(
            id=artist.id or artist.doc_key,
            title=name,
            artist_names=[name],
            artwork=artist.profile_image_url or '',
            url='',
            duration=0,
            type=RESULT_TYPE_ARTIST,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'artistNames': list(self.artist_names),
            'artwork': self.artwork,
            'url': self.url,
            'duration': self.duration,
            'type': self.type,
        }


@dataclass
class Playlist:
    id: str
    user_id: str
    name: str
    description: str = ''
    songs: list = field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['id'],
            user_id=row['user_id'],
            name=row.get('name') or '',
            description=row.get('description') or '',
            songs=list(row.get('songs') or []),
            created_at=row.get('created_at'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'songs': list(self.songs),
            'createdAt': to_unix(self.created_at),
        }


def playlist_entry(song, added_at=None):
    """
    Build an immutable playlist entry from a song

    The snapshot copies the song as it is now; later edits to the song do
    not flow into playlists. Entries are identified by songId, not by
    structural equality of the snapshot.
    """
    added_at = added_at or utc_now()
    return {
        'songId': song.id,
        'addedAt': to_unix(added_at),
        'song': song.to_dict(),
    }


@dataclass
class ReconcileReport:
    artists_stabilized: int = 0
    duplicates_deleted: int = 0
    malformed_deleted: int = 0
    legacy_ids_replaced: int = 0
    artists_created: int = 0
    songs_scanned: int = 0
    songs_updated_count: int = 0
    songs_relinked: int = 0
    dry_run: bool = False

    def to_dict(self):
        return {
            'artists_stabilized': self.artists_stabilized,
            'duplicates_deleted': self.duplicates_deleted,
            'malformed_deleted': self.malformed_deleted,
            'legacy_ids_replaced': self.legacy_ids_replaced,
            'artists_created': self.artists_created,
            'songs_scanned': self.songs_scanned,
            'songs_updated_count': self.songs_updated_count,
            'songs_relinked': self.songs_relinked,
            'dry_run': self.dry_run,
        }


@dataclass
class BackfillReport:
    songs_scanned: int = 0
    songs_updated: int = 0
    artists_scanned: int = 0
    artists_updated: int = 0

    def to_dict(self):
        return {
            'songs_scanned': self.songs_scanned,
            'songs_updated': self.songs_updated,
            'artists_scanned': self.artists_scanned,
            'artists_updated': self.artists_updated,
        }
