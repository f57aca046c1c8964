from quire.db.models.collection import Collection
from quire.db.models.document import Document
from quire.db.models.event import Event
from quire.db.models.membership import Membership
from quire.db.models.pin import Pin
from quire.db.models.star import Star
from quire.db.models.team import Team
from quire.db.models.user import User

__all__ = ["Collection", "Document", "Event", "Membership", "Pin", "Star", "Team", "User"]
