from typing import Optional
from pydantic import BaseModel

from app.models.plan import Person


class PersonResponse(BaseModel):
    id: str
    name: str
    user_id: Optional[str] = None
    is_owner: bool = False

    @classmethod
    def from_person(cls, person: Person) -> "PersonResponse":
        return cls(
            id=person.str_id,
            name=person.name,
            user_id=person.user_id,
            is_owner=person.is_owner
        )
