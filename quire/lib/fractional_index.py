"""Fractional indexing for user-defined ordering.

Keys are fractional digit strings over the printable ASCII range
(``0x20`` to ``0x7E``). Because the alphabet is already in byte order, two
keys compare correctly with a plain ordinal string comparison, which is what
the database does when the ``index`` column uses a byte-order collation
(``COLLATE "C"`` on PostgreSQL).

A new key can always be generated between two existing keys, so inserting
an item never requires renumbering its neighbours:

    >>> midpoint(None, None)
    'P'
    >>> midpoint("P", None)
    'Q'
    >>> midpoint("P", "Q")
    'PP'
    >>> midpoint(None, "P")
    'O'

Keys never end with the zero digit (a space). With that rule in place there
is always room for another key between any two distinct keys.
"""

from __future__ import annotations

from quire.lib.exceptions import ValidationError

ALPHABET = "".join(chr(code) for code in range(0x20, 0x7F))
BASE = len(ALPHABET)  # 95
ZERO = ALPHABET[0]
MIDDLE = ALPHABET[BASE // 2]

MAX_INDEX_LENGTH = 100
# Generated keys may outgrow the caller limit before a scope is rebalanced
STORED_INDEX_LENGTH = 255
INDEX_CHARACTERS_MESSAGE = "index must be between x20 to x7E ASCII"


class OrderKeyError(ValueError):
    """Raised when keys passed to the primitive cannot be ordered."""


def _digit(char: str) -> int:
    return ord(char) - 0x20


def is_valid_key(key: str) -> bool:
    """Check that a key is non-empty, in the alphabet and has no trailing zero."""
    if not key or not isinstance(key, str):
        return False
    if any(not 0x20 <= ord(char) <= 0x7E for char in key):
        return False
    return key[-1] != ZERO


def _check_key(key: str) -> None:
    if not is_valid_key(key):
        raise OrderKeyError(f"Invalid order key: {key!r}")


def _increment(key: str) -> str:
    last = _digit(key[-1])
    if last < BASE - 1:
        return key[:-1] + ALPHABET[last + 1]
    # '~' cannot be incremented, extend so there is room on both sides
    return key + MIDDLE


def _decrement(key: str) -> str:
    last = _digit(key[-1])
    if last > 1:
        return key[:-1] + ALPHABET[last - 1]
    # stepping '!' down would leave a trailing zero
    return key[:-1] + ZERO + MIDDLE


def _between(lower: str, upper: str | None) -> str:
    """Digit-wise midpoint. ``lower`` may be empty, ``upper`` may be None."""
    if upper is not None:
        shared = 0
        while (lower[shared] if shared < len(lower) else ZERO) == upper[shared]:
            shared += 1
        if shared:
            return upper[:shared] + _between(lower[shared:], upper[shared:])

    low = _digit(lower[0]) if lower else 0
    high = _digit(upper[0]) if upper is not None else BASE

    if high - low > 1:
        return ALPHABET[(low + high + 1) // 2]

    if upper is not None and len(upper) > 1:
        return upper[0]

    return ALPHABET[low] + _between(lower[1:], None)


def midpoint(lower: str | None = None, upper: str | None = None) -> str:
    """Return a key that sorts strictly between ``lower`` and ``upper``.

    Args:
        lower: Existing key to sort after, or None for no lower bound
        upper: Existing key to sort before, or None for no upper bound

    Returns:
        A new key. Its length may grow as keys get denser; callers must not
        assume a bounded length.

    Raises:
        OrderKeyError: If a key is malformed or ``lower >= upper``
    """
    if lower is not None:
        _check_key(lower)
    if upper is not None:
        _check_key(upper)
    if lower is not None and upper is not None and lower >= upper:
        raise OrderKeyError(f"{lower!r} must sort before {upper!r}")

    if lower is not None and upper is None:
        return _increment(lower)
    if lower is None and upper is not None:
        return _decrement(upper)

    return _between(lower or "", upper)


def spaced_keys(count: int) -> list[str]:
    """Generate ``count`` increasing keys spread evenly across the key space.

    All keys share the smallest width that can hold ``count`` distinct values,
    so a rebalanced scope ends up with short keys and wide gaps.
    """
    if count <= 0:
        return []

    width = 1
    while BASE**width <= count:
        width += 1

    span = BASE**width
    keys = []
    for position in range(1, count + 1):
        value = position * span // (count + 1)
        digits = []
        for _ in range(width):
            value, remainder = divmod(value, BASE)
            digits.append(ALPHABET[remainder])
        keys.append("".join(reversed(digits)).rstrip(ZERO))
    return keys


def validate_index(value: str) -> str:
    """Validate a caller-supplied index.

    Raises:
        ValidationError: With a message suitable for showing to the user
    """
    if not value:
        raise ValidationError("index must not be empty")
    if len(value) > MAX_INDEX_LENGTH:
        raise ValidationError(f"index must be {MAX_INDEX_LENGTH} characters or less")
    if any(not 0x20 <= ord(char) <= 0x7E for char in value):
        raise ValidationError(INDEX_CHARACTERS_MESSAGE)
    if value[-1] == ZERO:
        raise ValidationError("index must not end with a space")
    return value
