from datetime import date, datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today_iso() -> str:
    """Ledger dates are stored as ISO calendar dates (YYYY-MM-DD)."""
    return date.today().isoformat()


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a valid id, None otherwise."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class PyObjectId(ObjectId):
    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any):
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(
            cls.validate,
            serialization=core_schema.plain_serializer_function_ser_schema(str, when_used="json")
        )

    @classmethod
    def validate(cls, value: Any) -> ObjectId:
        oid = parse_object_id(value)
        if oid is None:
            raise ValueError("Invalid ObjectId")
        return oid


class MongoModel(BaseModel):
    id: PyObjectId = Field(default_factory=PyObjectId, alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        from_attributes=True
    )

    @property
    def str_id(self) -> str:
        return str(self.id)

    def to_document(self) -> dict:
        """Document ready for insert_one (keeps ObjectId and datetimes)."""
        return self.model_dump(by_alias=True)
