"""Pins API: documents pinned to the team home or to a collection."""

from typing import Any
from uuid import UUID

from litestar import Controller, delete, get, patch, post
from sqlalchemy.ext.asyncio import AsyncSession

from quire.controllers.helpers import PinCreate, Reorder, present_pin
from quire.db.models import User
from quire.db.services import pin_service
from quire.lib.exceptions import NotFoundError


class PinsController(Controller):
    path = "/api/pins"

    @get("/")
    async def list_pins(
        self, db_session: AsyncSession, actor: User, collection_id: UUID | None = None
    ) -> dict[str, Any]:
        """List the pins of the team home, or of one collection."""
        pins = await pin_service.list_pins(db_session, actor.team_id, collection_id)
        return {"data": [await present_pin(pin) for pin in pins]}

    @post("/")
    async def create(self, db_session: AsyncSession, actor: User, data: PinCreate) -> dict[str, Any]:
        pin = await pin_service.create_pin(
            db_session,
            actor,
            data.document_id,
            collection_id=data.collection_id,
            index=data.index,
        )
        return {"data": await present_pin(pin)}

    @patch("/{pin_id:uuid}")
    async def update(self, db_session: AsyncSession, actor: User, pin_id: UUID, data: Reorder) -> dict[str, Any]:
        """Move a pin to a new index."""
        pin = await pin_service.update_pin(db_session, actor, pin_id, data.index)
        if pin is None:
            raise NotFoundError("Pin not found")
        return {"data": await present_pin(pin)}

    @delete("/{pin_id:uuid}", status_code=200)
    async def remove(self, db_session: AsyncSession, actor: User, pin_id: UUID) -> dict[str, Any]:
        if not await pin_service.delete_pin(db_session, actor, pin_id):
            raise NotFoundError("Pin not found")
        return {"success": True}
