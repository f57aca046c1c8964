"""Stars API: the acting user's starred documents and collections."""

from typing import Any
from uuid import UUID

from litestar import Controller, delete, get, patch, post
from sqlalchemy.ext.asyncio import AsyncSession

from quire.controllers.helpers import Reorder, StarCreate, present_star
from quire.db.models import User
from quire.db.services import star_service
from quire.lib.exceptions import NotFoundError


class StarsController(Controller):
    path = "/api/stars"

    @get("/")
    async def list_stars(self, db_session: AsyncSession, actor: User) -> dict[str, Any]:
        stars = await star_service.list_stars(db_session, actor.id)
        return {"data": [await present_star(star) for star in stars]}

    @post("/")
    async def create(self, db_session: AsyncSession, actor: User, data: StarCreate) -> dict[str, Any]:
        """Star a document or collection. Starring it again returns the same star."""
        star = await star_service.create_star(
            db_session,
            actor,
            document_id=data.document_id,
            collection_id=data.collection_id,
            index=data.index,
        )
        return {"data": await present_star(star)}

    @patch("/{star_id:uuid}")
    async def update(self, db_session: AsyncSession, actor: User, star_id: UUID, data: Reorder) -> dict[str, Any]:
        star = await star_service.update_star(db_session, actor, star_id, data.index)
        if star is None:
            raise NotFoundError("Star not found")
        return {"data": await present_star(star)}

    @delete("/{star_id:uuid}", status_code=200)
    async def remove(self, db_session: AsyncSession, actor: User, star_id: UUID) -> dict[str, Any]:
        if not await star_service.delete_star(db_session, actor, star_id):
            raise NotFoundError("Star not found")
        return {"success": True}
