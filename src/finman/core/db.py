from collections.abc import Iterable
from typing import Any, Self
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class StoredModel(BaseModel):
    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Convert the model to a storage document with an _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")  # Rename id → _id for storage
        return data

    @classmethod
    def from_documents(cls, documents: Iterable[dict[str, Any]]) -> list[Self]:
        """Validate a batch of stored documents into model instances."""
        return [cls.model_validate(item) for item in documents]
