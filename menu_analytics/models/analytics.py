"""
Analytics models for persisted menu tracking events.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class MenuAnalyticsEvent(SQLModel, table=True):
    """One ingested tracking event, stored without raw IP or user agent."""

    __tablename__ = "menu_analytics"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    restaurant_id: str = Field(foreign_key="restaurant.id", index=True)
    menu_id: Optional[str] = Field(default=None)
    session_id: str = Field(index=True)
    event_type: str = Field(index=True)  # page_view, item_view, category_view, time_spent

    item_id: Optional[str] = Field(default=None)
    category_id: Optional[str] = Field(default=None)
    time_spent: Optional[int] = Field(default=None)  # Seconds

    page_path: Optional[str] = Field(default=None)
    referrer: Optional[str] = Field(default=None)

    ip_hash: str  # Salted, truncated SHA-256
    user_agent_hash: str  # Truncated SHA-256
    device_type: str  # desktop, mobile, tablet

    timestamp: datetime = Field(index=True)  # Client-reported event time
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
