"""
Restaurant (tenant) model.

Only the columns the analytics ingestion path reads; menu CRUD lives elsewhere.
"""

import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class Restaurant(SQLModel, table=True):
    """A tenant whose public menu pages are tracked."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    slug: str = Field(index=True, unique=True)  # First path segment of public menu URLs
    name: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
