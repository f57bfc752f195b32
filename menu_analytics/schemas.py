from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventKind(str, Enum):
    """Tracked menu interaction kinds."""

    PAGE_VIEW = "page_view"
    ITEM_VIEW = "item_view"
    CATEGORY_VIEW = "category_view"
    TIME_SPENT = "time_spent"


# Body fields that must be present and non-empty on every tracked event
REQUIRED_EVENT_FIELDS = ("type", "restaurantId", "sessionId")


class TrackEventRequest(BaseModel):
    """Wire body of POST /analytics/track (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    type: EventKind
    restaurant_id: str = Field(alias="restaurantId", min_length=1)
    session_id: str = Field(alias="sessionId", min_length=1, max_length=128)
    menu_id: Optional[str] = Field(default=None, alias="menuId")
    item_id: Optional[str] = Field(default=None, alias="itemId")
    category_id: Optional[str] = Field(default=None, alias="categoryId")
    time_spent: Optional[int] = Field(default=None, alias="timeSpent", ge=0)
    timestamp: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("restaurant_id", "session_id")
    @classmethod
    def strip_identifier(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    def metadata_str(self, key: str, limit: int = 500) -> Optional[str]:
        """String metadata value truncated for storage, or None."""
        value = (self.metadata or {}).get(key)
        if value is None or value == "":
            return None
        return str(value)[:limit]


class TrackEventResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
