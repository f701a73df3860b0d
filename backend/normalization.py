"""
Normalization Utilities
Canonical lookup keys for artist identity and prefix search.

Every write path that stores a canonical_key, search_name or search_title
must derive it through normalize() so lookups and range queries agree.
"""

# Appended to a normalized prefix to form the exclusive upper bound of a
# range query: the highest code point, so every continuation of the prefix
# sorts below it under code point ("C" collation) comparison.
SEARCH_UPPER_SENTINEL = chr(0x10FFFF)


def normalize(value):
    """
    Map a display string to its canonical lookup key

    Args:
        value: Display string (artist name, song title, search query)

    Returns:
        Trimmed, lowercased string ('' for None)
    """
    if value is None:
        return ''
    return value.strip().lower()


def prefix_bounds(query):
    """
    Build the half-open [start, end) range for a prefix search

    Args:
        query: Raw user query

    Returns:
        (start, end) tuple, or None when the normalized query is empty
    """
    key = normalize(query)
    if not key:
        return None
    return key, key + SEARCH_UPPER_SENTINEL
