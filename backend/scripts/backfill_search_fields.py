#!/usr/bin/env python3
"""
Backfill Search Fields

Recomputes songs.search_title and artists.search_name (plus canonical_key)
from the display values. Only rows whose stored value differs are written,
so running it twice in a row writes nothing the second time.
"""

from script_base import ScriptBase, run_script

from catalog_store import CatalogStore
from search_index import SearchIndexMaintainer


def main():
    script = ScriptBase(
        name="backfill_search_fields",
        description="Recompute normalized search fields for songs and artists"
    )
    script.add_debug_arg()
    script.parse_args()

    script.print_header()

    report = SearchIndexMaintainer(CatalogStore()).backfill_search_fields()

    script.print_summary(report.to_dict())
    return True


if __name__ == "__main__":
    run_script(main)
