from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer


class BaseDBModel(BaseModel):
    """Base schema for rows read back from the database."""

    id: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
    )

    @field_serializer("created_at", when_used="always")
    def _serialize_created_at(self, v: Optional[datetime]) -> Optional[str]:
        return v.isoformat() if v else None
