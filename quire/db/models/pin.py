from uuid import UUID

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from quire.db.base import Base
from quire.db.types import OrderKey


class Pin(Base):
    """A document pinned to a collection, or to the team home when collection_id is None."""

    __tablename__ = "pins"
    __table_args__ = (
        Index("ix_pins_team_id_collection_id", "team_id", "collection_id"),
    )

    team_id: Mapped[UUID] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    collection_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"), nullable=True
    )
    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    index: Mapped[str | None] = mapped_column(OrderKey(), nullable=True)
