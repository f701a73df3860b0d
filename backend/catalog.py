"""
Catalog composition root

Builds the service graph once per process and exposes it to Flask routes
through app.extensions['catalog'].
"""

from flask import current_app

from artist_directory import ArtistDirectory
from auth_utils import IdentityVerifier
from catalog_query import CatalogQuery
from catalog_store import CatalogStore
from config import Settings
from playlist_store import PlaylistStore
from search_index import SearchIndexMaintainer
from song_catalog import SongCatalog
from storage_service import StorageService


class Catalog:
    """All catalog services sharing one store"""

    def __init__(self, store, storage=None, verifier=None, settings=None):
        self.settings = settings or Settings()
        self.store = store
        self.storage = storage
        self.verifier = verifier

        self.artists = ArtistDirectory(store)
        self.songs = SongCatalog(store, self.artists)
        self.search_index = SearchIndexMaintainer(store)
        self.query = CatalogQuery(self.songs, self.artists, self.settings.search_strictness)
        self.playlists = PlaylistStore(store)

    @classmethod
    def from_settings(cls, settings):
        storage = StorageService(
            settings.b2_account_id,
            settings.b2_application_key,
            settings.b2_bucket_name,
            api_base=settings.b2_api_base,
        )
        verifier = IdentityVerifier(settings.firebase_project_id)
        return cls(CatalogStore(), storage=storage, verifier=verifier, settings=settings)

    def is_admin(self, identity):
        """Admin privilege: an `admin: true` custom claim or a listed uid"""
        if identity is None:
            return False
        return identity.claims.get('admin') is True or identity.subject_id in self.settings.admin_uids


def current_catalog():
    return current_app.extensions['catalog']
