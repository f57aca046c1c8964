"""Collections API: the team sidebar."""

from typing import Any
from uuid import UUID

from litestar import Controller, get, patch, post
from sqlalchemy.ext.asyncio import AsyncSession

from quire.controllers.helpers import CollectionCreate, Reorder, present_collection
from quire.db.models import User
from quire.db.services import collection_service
from quire.lib.exceptions import NotFoundError


class CollectionsController(Controller):
    path = "/api/collections"

    @get("/")
    async def list_collections(self, db_session: AsyncSession, actor: User) -> dict[str, Any]:
        collections = await collection_service.list_collections(db_session, actor.team_id)
        return {"data": [await present_collection(collection) for collection in collections]}

    @post("/")
    async def create(self, db_session: AsyncSession, actor: User, data: CollectionCreate) -> dict[str, Any]:
        collection = await collection_service.create_collection(db_session, actor, data.name, index=data.index)
        return {"data": await present_collection(collection)}

    @patch("/{collection_id:uuid}/move")
    async def move(
        self, db_session: AsyncSession, actor: User, collection_id: UUID, data: Reorder
    ) -> dict[str, Any]:
        """Move a collection to a new index in the sidebar."""
        collection = await collection_service.move_collection(db_session, actor, collection_id, data.index)
        if collection is None:
            raise NotFoundError("Collection not found")
        return {"data": await present_collection(collection)}
