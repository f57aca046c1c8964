"""Natural ("human") sort keys: ``Item 2`` sorts before ``Item 10``."""

import re

_CHUNK_RE = re.compile(r"(\d+)")


def natural_key(value: str | None) -> tuple:
    """Build a case-insensitive, digit-aware sort key for ``value``.

    Text chunks compare by their casefolded form and numeric chunks by their
    integer value. Each chunk is tagged so text and numbers never get compared
    directly with each other.
    """
    key = []
    for chunk in _CHUNK_RE.split((value or "").strip()):
        if not chunk:
            continue
        if chunk.isdigit():
            key.append((0, int(chunk), ""))
        else:
            key.append((1, 0, chunk.casefold()))
    return tuple(key)
