"""
Data Models for the Tracking Client

Defines the page snapshot the tracker observes and the immutable events it
produces.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from menu_analytics.schemas import EventKind


def restaurant_id_from_path(path: str) -> str:
    """First path segment of a public menu URL, e.g. ``/tonys-pizza/menu/lunch`` -> ``tonys-pizza``."""
    parts = urlsplit(path).path.split("/")
    return parts[1] if len(parts) > 1 else ""


@dataclass(frozen=True)
class PageContext:
    """Snapshot of the browsing context the tracker runs in."""

    path: str
    referrer: str = ""
    user_agent: str = ""
    screen_size: Tuple[int, int] = (0, 0)
    viewport: Tuple[int, int] = (0, 0)

    def with_path(self, path: str) -> "PageContext":
        return replace(self, path=path)

    def metadata(self) -> Dict[str, str]:
        return {
            "path": self.path,
            "referrer": self.referrer,
            "userAgent": self.user_agent,
            "screenSize": f"{self.screen_size[0]}x{self.screen_size[1]}",
            "viewport": f"{self.viewport[0]}x{self.viewport[1]}",
        }


@dataclass(frozen=True)
class AnalyticsEvent:
    """One tracked interaction, immutable once built."""

    kind: EventKind
    restaurant_id: str
    session_id: str
    occurred_at: datetime
    menu_id: Optional[str] = None
    item_id: Optional[str] = None
    category_id: Optional[str] = None
    time_spent_seconds: Optional[int] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.restaurant_id:
            raise ValueError("restaurant_id is required")
        if not self.session_id:
            raise ValueError("session_id is required")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_payload(self) -> Dict[str, Any]:
        """Render the JSON body accepted by the ingestion endpoint."""
        payload: Dict[str, Any] = {
            "type": self.kind.value,
            "restaurantId": self.restaurant_id,
            "sessionId": self.session_id,
            "timestamp": self.occurred_at.isoformat(),
        }
        optional = {
            "menuId": self.menu_id,
            "itemId": self.item_id,
            "categoryId": self.category_id,
            "timeSpent": self.time_spent_seconds,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload
