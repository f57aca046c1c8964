from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quire.db.base import Base
from quire.db.types import OrderKey


class Star(Base):
    """A user's starred document or collection. Exactly one target is set."""

    __tablename__ = "stars"
    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_stars_user_document"),
        UniqueConstraint("user_id", "collection_id", name="uq_stars_user_collection"),
        CheckConstraint(
            "(document_id IS NULL) <> (collection_id IS NULL)",
            name="single_target",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"), nullable=True
    )
    collection_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"), nullable=True
    )

    index: Mapped[str | None] = mapped_column(OrderKey(), nullable=True)
