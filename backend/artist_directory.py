"""
Artist Directory - canonical artist identities

Maps canonical names (see normalization.normalize) to stable artist ids.

resolve_or_create() runs on the ingestion hot path without a lock or
transaction, so two concurrent uploads naming the same new artist can both
create a record. reconcile() is the administrative pass that merges those
duplicates and rewrites song references; it is safe to re-run.

Reconcile stages:
1. Artists: delete malformed and duplicate documents, stabilize ids,
   upsert canonical documents. One atomic batch.
2. Songs: recompute artist_ids from artist_names through the canonical
   map, minting identities for orphaned names. One atomic batch, run only
   after stage 1 committed. Stage 1 is not rolled back if stage 2 fails.
"""

import logging
import uuid

from errors import BatchCommitError, UpstreamUnavailable, ValidationError
from models import ArtistIdentity, ReconcileReport, UNKNOWN_ARTIST, utc_now
from normalization import normalize, prefix_bounds

logger = logging.getLogger(__name__)

# Ids shorter than this are legacy hand-made or auto-generated keys
MIN_STABLE_ID_LENGTH = 10


def new_artist_id():
    return str(uuid.uuid4())


def is_stable_id(value):
    return isinstance(value, str) and len(value) >= MIN_STABLE_ID_LENGTH


class ArtistDirectory:
    """Resolves artist display names to stable identities"""

    def __init__(self, store, id_factory=None, clock=None):
        """
        Args:
            store: CatalogStore (or anything with the same artist/song methods)
            id_factory: Callable returning a new globally unique id
            clock: Callable returning the current UTC datetime
        """
        self.store = store
        self.id_factory = id_factory or new_artist_id
        self.clock = clock or utc_now

    # ========================================================================
    # INGESTION
    # ========================================================================

    def resolve_or_create(self, display_name, best_effort=False):
        """
        Return the stable id for a display name, creating the identity if needed

        The first writer wins display casing: an existing record's name is
        never overwritten here.

        Args:
            display_name: Artist name as submitted
            best_effort: If True, store failures are logged and a freshly
                minted id is returned instead of raising

        Returns:
            Artist id (string)

        Raises:
            ValidationError: If the name is blank
            UpstreamUnavailable: On store failure when best_effort is False
        """
        name = (display_name or '').strip()
        canonical_key = normalize(name)
        if not canonical_key:
            raise ValidationError('Artist name is required')

        try:
            existing = self.store.find_artist_by_canonical_key(canonical_key)
        except UpstreamUnavailable as e:
            if not best_effort:
                raise
            artist_id = self.id_factory()
            logger.warning(f"Artist lookup failed for '{name}', using unlinked id {artist_id}: {e.message}")
            return artist_id

        if existing is not None:
            artist_id = existing.id or existing.doc_key
            logger.debug(f"Artist found via canonical key: {name} -> {artist_id}")
            return artist_id

        artist_id = self.id_factory()
        artist = ArtistIdentity(
            doc_key=artist_id,
            id=artist_id,
            name=name,
            canonical_key=canonical_key,
            search_name=canonical_key,
            bio='',
            profile_image_url='',
            created_at=self.clock(),
        )
        try:
            self.store.insert_artist(artist)
        except UpstreamUnavailable as e:
            if not best_effort:
                raise
            logger.warning(f"Failed to save new artist '{name}' ({artist_id}): {e.message}")
            return artist_id

        logger.info(f"New artist created: {name}, ID: {artist_id}")
        return artist_id

    def prefix_search(self, query):
        """Artists whose search_name starts with the normalized query, ascending"""
        bounds = prefix_bounds(query)
        if bounds is None:
            return []
        return self.store.artists_in_search_range(*bounds)

    # ========================================================================
    # RECONCILIATION
    # ========================================================================

    def reconcile(self, dry_run=False):
        """
        Merge duplicate identities and repair song references

        Args:
            dry_run: If True, compute the report without writing anything

        Returns:
            ReconcileReport

        Raises:
            BatchCommitError: If a stage fails; report carries the progress
                made so far (stage 1 stays committed if stage 2 fails)
        """
        report = ReconcileReport(dry_run=dry_run)
        prefix = "[DRY RUN] " if dry_run else ""
        logger.info(f"{prefix}Starting artist reconciliation...")

        canonical_ids = self._reconcile_artists(report, dry_run)

        logger.info(f"{prefix}Artist normalization complete. {report.artists_stabilized} artists stabilized, "
                    f"{report.duplicates_deleted} duplicates deleted, {report.malformed_deleted} malformed deleted. "
                    f"Starting song migration...")

        self._reconcile_songs(canonical_ids, report, dry_run)

        logger.info(f"{prefix}Reconciliation complete: {report.to_dict()}")
        return report

    def _reconcile_artists(self, report, dry_run):
        """Stage 1: returns the canonical_key -> id map"""
        try:
            artists = self.store.list_artists()
        except UpstreamUnavailable as e:
            raise BatchCommitError('artists', e.message, report) from e

        canonical_ids = {}
        deletes = []
        upserts = []
        now = self.clock()

        for artist in artists:
            canonical_key = normalize(artist.name) if isinstance(artist.name, str) else ''
            if not canonical_key:
                logger.warning(f"Artist document {artist.doc_key} has invalid or missing name. Deleting.")
                deletes.append(artist.doc_key)
                report.malformed_deleted += 1
                continue

            if canonical_key in canonical_ids:
                logger.info(f"Duplicate artist found: {canonical_key}. Doc {artist.doc_key} marked for deletion, "
                            f"using canonical ID {canonical_ids[canonical_key]}.")
                deletes.append(artist.doc_key)
                report.duplicates_deleted += 1
                continue

            if is_stable_id(artist.id):
                canonical_id = artist.id
            elif is_stable_id(artist.doc_key):
                canonical_id = artist.doc_key
            else:
                canonical_id = self.id_factory()
                report.legacy_ids_replaced += 1
                logger.info(f"Legacy artist key {artist.doc_key} replaced with stable ID {canonical_id}")

            canonical_ids[canonical_key] = canonical_id
            upserts.append(ArtistIdentity(
                doc_key=artist.doc_key,
                id=canonical_id,
                name=artist.name,
                canonical_key=canonical_key,
                search_name=artist.search_name,
                bio=artist.bio,
                profile_image_url=artist.profile_image_url,
                created_at=now,
            ))

        report.artists_stabilized = len(canonical_ids)

        if not dry_run:
            try:
                self.store.commit_artist_stage(deletes, upserts)
            except UpstreamUnavailable as e:
                raise BatchCommitError('artists', e.message, report) from e

        return canonical_ids

    def _reconcile_songs(self, canonical_ids, report, dry_run):
        """Stage 2: rewrite artist_ids on every song"""
        try:
            songs = self.store.list_songs()
        except UpstreamUnavailable as e:
            raise BatchCommitError('songs', e.message, report) from e

        updates = []
        new_artists = []
        now = self.clock()

        for song in songs:
            report.songs_scanned += 1
            artist_names = list(song.artist_names) or [UNKNOWN_ARTIST]

            new_artist_ids = []
            for name in artist_names:
                canonical_key = normalize(name)
                artist_id = canonical_ids.get(canonical_key)
                if artist_id is None:
                    artist_id = self.id_factory()
                    if canonical_key:
                        canonical_ids[canonical_key] = artist_id
                        new_artists.append(ArtistIdentity(
                            doc_key=artist_id,
                            id=artist_id,
                            name=name.strip(),
                            canonical_key=canonical_key,
                            search_name=canonical_key,
                            created_at=now,
                        ))
                        logger.info(f"Orphaned artist name '{name}' on song {song.id} given new ID {artist_id}")
                    else:
                        logger.warning(f"Song {song.id} has a blank artist name; assigned unlinked ID {artist_id}")
                new_artist_ids.append(artist_id)

            # Length-only comparison; reorderings and same-length swaps are
            # counted in songs_relinked instead.
            if new_artist_ids and len(new_artist_ids) != len(song.artist_ids):
                report.songs_updated_count += 1
            if new_artist_ids != list(song.artist_ids) or artist_names != list(song.artist_names):
                report.songs_relinked += 1

            updates.append((song.id, new_artist_ids, artist_names))

        report.artists_created = len(new_artists)

        if not dry_run:
            try:
                self.store.commit_song_stage(updates, new_artists)
            except UpstreamUnavailable as e:
                raise BatchCommitError('songs', e.message, report) from e
