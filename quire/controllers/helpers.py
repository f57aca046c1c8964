"""Shared controller plumbing: the acting user, request bodies and payloads."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from litestar import Request
from litestar.exceptions import NotAuthorizedException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quire.db.models import Collection, Membership, Pin, Star, User
from quire.lib.exceptions import ValidationError
from quire.lib.fractional_index import MAX_INDEX_LENGTH, validate_index
from quire.lib.hooks import hooks, PRESENT_COLLECTION, PRESENT_MEMBERSHIP, PRESENT_PIN, PRESENT_STAR

SESSION_USER_ID = "user_id"


async def provide_actor(request: Request, db_session: AsyncSession) -> User:
    """Resolve the acting user from the cookie session."""
    user_id = request.session.get(SESSION_USER_ID)
    if not user_id:
        raise NotAuthorizedException("Authentication required")

    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise NotAuthorizedException("Invalid user session")

    result = await db_session.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()
    if not user:
        raise NotAuthorizedException("Invalid user session")
    return user


# --- Request models ---


class _IndexedBody(BaseModel):
    index: str | None = Field(default=None, max_length=MAX_INDEX_LENGTH)

    @field_validator("index")
    @classmethod
    def _check_index(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            return validate_index(value)
        except ValidationError as exc:
            raise ValueError(exc.detail) from exc


class PinCreate(_IndexedBody):
    document_id: UUID
    collection_id: UUID | None = None


class StarCreate(_IndexedBody):
    document_id: UUID | None = None
    collection_id: UUID | None = None


class CollectionCreate(_IndexedBody):
    name: str = Field(min_length=1, max_length=255)


class MembershipCreate(BaseModel):
    user_id: UUID
    document_id: UUID
    permission: Literal["read", "read_write", "admin"] = "read_write"


class Reorder(_IndexedBody):
    index: str = Field(max_length=MAX_INDEX_LENGTH)


# --- Payloads ---


def _id(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


async def present_pin(pin: Pin) -> dict[str, Any]:
    payload = {
        "id": str(pin.id),
        "documentId": str(pin.document_id),
        "collectionId": _id(pin.collection_id),
        "index": pin.index,
        "createdById": _id(pin.created_by_id),
        "createdAt": _timestamp(pin.created_at),
        "updatedAt": _timestamp(pin.updated_at),
    }
    return await hooks.apply_filters(PRESENT_PIN, payload, pin)


async def present_star(star: Star) -> dict[str, Any]:
    payload = {
        "id": str(star.id),
        "documentId": _id(star.document_id),
        "collectionId": _id(star.collection_id),
        "index": star.index,
        "createdAt": _timestamp(star.created_at),
        "updatedAt": _timestamp(star.updated_at),
    }
    return await hooks.apply_filters(PRESENT_STAR, payload, star)


async def present_collection(collection: Collection) -> dict[str, Any]:
    payload = {
        "id": str(collection.id),
        "name": collection.name,
        "index": collection.index,
        "createdAt": _timestamp(collection.created_at),
        "updatedAt": _timestamp(collection.updated_at),
    }
    return await hooks.apply_filters(PRESENT_COLLECTION, payload, collection)


async def present_membership(membership: Membership) -> dict[str, Any]:
    payload = {
        "id": str(membership.id),
        "userId": str(membership.user_id),
        "documentId": str(membership.document_id),
        "permission": membership.permission,
        "index": membership.index,
        "createdById": _id(membership.created_by_id),
        "createdAt": _timestamp(membership.created_at),
        "updatedAt": _timestamp(membership.updated_at),
    }
    return await hooks.apply_filters(PRESENT_MEMBERSHIP, payload, membership)
