#!/usr/bin/env python3
"""
Reconcile Artists

Repairs the artist directory and song links in two stages:
1. Artists: drop malformed and duplicate records, replace short legacy ids
2. Songs: relink every song's artist ids to the canonical ids, creating
   artist records for names that have none

Each stage commits as one transaction. A failure in the song stage leaves
the artist stage committed; the partial report is logged.

Examples:
  python reconcile_artists.py --dry-run
  python reconcile_artists.py --debug
"""

from script_base import ScriptBase, run_script

from artist_directory import ArtistDirectory
from catalog_store import CatalogStore
from errors import BatchCommitError


def main():
    script = ScriptBase(
        name="reconcile_artists",
        description="Deduplicate artists and relink songs to canonical artist ids",
        epilog=__doc__.split('Examples:')[1]
    )
    script.add_dry_run_arg()
    script.add_debug_arg()
    args = script.parse_args()

    script.print_header({"DRY RUN": args.dry_run})

    directory = ArtistDirectory(CatalogStore())
    try:
        report = directory.reconcile(dry_run=args.dry_run)
    except BatchCommitError as e:
        script.logger.error(f"Reconcile stopped: {e.message}")
        if e.report is not None:
            script.print_summary(e.report.to_dict(), title="PARTIAL SUMMARY")
        return False

    script.print_summary(report.to_dict())
    return True


if __name__ == "__main__":
    run_script(main)
