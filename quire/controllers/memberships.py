"""Memberships API: documents shared with the acting user."""

from typing import Any
from uuid import UUID

from litestar import Controller, get, patch, post
from sqlalchemy.ext.asyncio import AsyncSession

from quire.controllers.helpers import MembershipCreate, Reorder, present_membership
from quire.db.models import User
from quire.db.services import membership_service
from quire.lib.exceptions import NotFoundError


class MembershipsController(Controller):
    path = "/api/memberships"

    @get("/")
    async def shared_with_me(self, db_session: AsyncSession, actor: User) -> dict[str, Any]:
        memberships = await membership_service.list_memberships(db_session, actor.id)
        return {"data": [await present_membership(membership) for membership in memberships]}

    @post("/")
    async def share(self, db_session: AsyncSession, actor: User, data: MembershipCreate) -> dict[str, Any]:
        membership = await membership_service.share_document(
            db_session, actor, data.user_id, data.document_id, data.permission
        )
        return {"data": await present_membership(membership)}

    @patch("/{membership_id:uuid}")
    async def update(
        self, db_session: AsyncSession, actor: User, membership_id: UUID, data: Reorder
    ) -> dict[str, Any]:
        membership = await membership_service.update_membership(db_session, actor, membership_id, data.index)
        if membership is None:
            raise NotFoundError("Membership not found")
        return {"data": await present_membership(membership)}
