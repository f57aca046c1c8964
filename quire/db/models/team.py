from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quire.db.base import Base

if TYPE_CHECKING:
    from quire.db.models.user import User


class Team(Base):
    """A workspace. Pins and collections are ordered per team."""

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    users: Mapped[list["User"]] = relationship("User", back_populates="team")
