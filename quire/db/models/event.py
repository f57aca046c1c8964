from uuid import UUID

from sqlalchemy import Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from quire.db.base import Base


class Event(Base):
    """Append-only audit record, written in the same transaction as the change.

    Ids are stored without foreign keys so the trail survives deletes.
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_model_id", "model_id"),
        Index("ix_events_name_created_at", "name", "created_at"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    actor_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    team_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    collection_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    document_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    model_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    data_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
