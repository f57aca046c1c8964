from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quire.db.base import Base

if TYPE_CHECKING:
    from quire.db.models.team import Team


class User(Base):
    """A team member. Stars are ordered per user."""

    __tablename__ = "users"

    team_id: Mapped[UUID] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    team: Mapped["Team"] = relationship("Team", back_populates="users")

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
