"""Column types for ordered keys.

Ordered keys must compare by raw byte value. PostgreSQL and MySQL compare
text using the database locale unless told otherwise, which can reorder
punctuation, digits and letters, so the column itself carries a byte-order
collation there. SQLite's default ``BINARY`` collation already is byte order.
"""

from sqlalchemy import String
from sqlalchemy.types import TypeEngine

from quire.lib.fractional_index import STORED_INDEX_LENGTH

POSTGRES_BYTE_ORDER = "C"
MYSQL_BYTE_ORDER = "utf8mb4_bin"


def OrderKey(length: int = STORED_INDEX_LENGTH) -> TypeEngine[str]:
    """String type whose comparisons use byte order on every dialect."""
    return (
        String(length)
        .with_variant(String(length, collation=POSTGRES_BYTE_ORDER), "postgresql")
        .with_variant(String(length, collation=MYSQL_BYTE_ORDER), "mysql", "mariadb")
    )
