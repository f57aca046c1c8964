from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from quire.db.base import Base
from quire.db.types import OrderKey


class Collection(Base):
    """A top-level group of documents, ordered in the team sidebar."""

    __tablename__ = "collections"

    team_id: Mapped[UUID] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Sidebar position; None until backfilled
    index: Mapped[str | None] = mapped_column(OrderKey(), nullable=True)
