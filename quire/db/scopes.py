"""Ordered scopes for each indexed entity kind.

Each function only says which rows belong together and which row stands for
the scope when locking; everything else lives in ``OrderedSet``.
"""

from uuid import UUID

from quire.db.models import Collection, Membership, Pin, Star, Team, User
from quire.db.ordering import OrderedSet


def pin_scope(team_id: UUID, collection_id: UUID | None = None) -> OrderedSet[Pin]:
    """Pins of one collection, or the team home when ``collection_id`` is None."""
    if collection_id is None:
        in_collection = Pin.collection_id.is_(None)
    else:
        in_collection = Pin.collection_id == collection_id
    return OrderedSet(Pin, Pin.team_id == team_id, in_collection, marker=(Team, team_id))


def star_scope(user_id: UUID) -> OrderedSet[Star]:
    return OrderedSet(Star, Star.user_id == user_id, marker=(User, user_id))


def collection_scope(team_id: UUID) -> OrderedSet[Collection]:
    return OrderedSet(Collection, Collection.team_id == team_id, marker=(Team, team_id))


def membership_scope(user_id: UUID) -> OrderedSet[Membership]:
    """Documents shared with one user, in their "shared with me" order."""
    return OrderedSet(Membership, Membership.user_id == user_id, marker=(User, user_id))
