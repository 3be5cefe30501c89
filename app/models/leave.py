"""Leave-plan flow: states and the values each step hands back."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from app.models.contribution import ContributionRecord
from app.models.plan import Person


class LeaveState(str, Enum):
    CONFIRM = "confirm"
    TRANSFER = "transfer"
    DELETE = "delete"
    DONE = "done"


class LeaveOption(str, Enum):
    TRANSFER = "transfer"
    DELETE = "delete"
    LEAVE = "leave"


class LeavePreview(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: LeaveState
    person: Person
    contributions: List[ContributionRecord] = []
    total: float = 0.0
    destinations: List[Person] = []
    options: List[LeaveOption] = []


class TransferPlan(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: LeaveState = LeaveState.TRANSFER
    person: Person
    destination: Person
    total: float
    amount: float

    @property
    def is_full(self) -> bool:
        return self.amount >= self.total


class LeaveResult(BaseModel):
    state: LeaveState = LeaveState.DONE
    person_id: str
    reassigned: int = 0
    scaled: int = 0
    deleted: int = 0
    transfer_record_id: Optional[str] = None
