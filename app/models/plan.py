from enum import Enum
from typing import List, Optional

from app.models.base import MongoModel


class DistributionMode(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"


class Plan(MongoModel):
    """A shared-expense (gestion) plan."""
    title: str
    owner_id: str
    members: List[str] = []  # user ids, set semantics
    distribution: DistributionMode = DistributionMode.EQUAL
    # Incremented by every ledger batch; used as an optimistic lock
    version: int = 0

    def is_member(self, user_id: str) -> bool:
        return user_id == self.owner_id or user_id in self.members

    def is_owner(self, user_id: str) -> bool:
        return user_id == self.owner_id


class Person(MongoModel):
    """A participant of a plan. Unregistered members have no user_id."""
    plan_id: str
    user_id: Optional[str] = None
    name: str = ""
    is_owner: bool = False

    @property
    def is_registered(self) -> bool:
        return self.user_id is not None
