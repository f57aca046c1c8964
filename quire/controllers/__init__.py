from quire.controllers.collections import CollectionsController
from quire.controllers.memberships import MembershipsController
from quire.controllers.pins import PinsController
from quire.controllers.stars import StarsController

__all__ = ["CollectionsController", "MembershipsController", "PinsController", "StarsController"]
