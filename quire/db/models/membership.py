from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quire.db.base import Base
from quire.db.types import OrderKey

PERMISSIONS = ("read", "read_write", "admin")


class Membership(Base):
    """A document shared directly with a user, listed under "shared with me"."""

    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_memberships_user_document"),
    )

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id: Mapped[UUID] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    created_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    permission: Mapped[str] = mapped_column(String(50), nullable=False, default="read_write")

    # Position in the recipient's "shared with me" list
    index: Mapped[str | None] = mapped_column(OrderKey(), nullable=True)
