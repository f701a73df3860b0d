"""
Catalog Query - unified prefix search over songs and artists

Songs come first, then artists, each group ascending by its search key.

Failure policy for the artist branch is configurable:
    best_effort - log the failure and return songs only (default)
    fail_fast   - raise, like a song-branch failure always does
"""

import enum
import logging

from errors import UpstreamUnavailable
from models import SearchResult
from normalization import normalize

logger = logging.getLogger(__name__)


class SearchStrictness(enum.Enum):
    BEST_EFFORT = 'best_effort'
    FAIL_FAST = 'fail_fast'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls((value or cls.BEST_EFFORT.value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown search strictness '{value}', using best_effort")
            return cls.BEST_EFFORT


class CatalogQuery:

    def __init__(self, song_catalog, artist_directory, strictness=SearchStrictness.BEST_EFFORT):
        self.songs = song_catalog
        self.artists = artist_directory
        self.strictness = SearchStrictness.parse(strictness)

    def search(self, query):
        """
        Prefix search across songs and artists

        Args:
            query: Raw query string; blank yields []

        Returns:
            List of SearchResult

        Raises:
            UpstreamUnavailable: If the song query fails, or the artist
                query fails under fail_fast
        """
        if not normalize(query):
            return []

        results = self.songs.prefix_search(query)

        try:
            artists = self.artists.prefix_search(query)
        except UpstreamUnavailable as e:
            if self.strictness is SearchStrictness.FAIL_FAST:
                raise
            logger.error(f"Error fetching artists for '{query}': {e.message}")
            artists = []

        results.extend(SearchResult.from_artist(artist) for artist in artists)
        logger.debug(f"Search '{query}': {len(results)} results")
        return results
