"""Dashboard read-model schemas"""

from datetime import datetime
from typing import Any

from pydantic import Field

from citizen_portal.schemas.common import CamelModel, Pagination


class ApplicationCounts(CamelModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class DashboardStats(CamelModel):
    applications: ApplicationCounts = Field(default_factory=ApplicationCounts)
    recent_activities: int = 0
    unread_notifications: int = 0


class Application(CamelModel):
    id: str
    type: str
    status: str
    created_at: datetime
    updated_at: datetime
    data: dict[str, Any] | None = None


class ApplicationPage(CamelModel):
    applications: list[Application] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class Activity(CamelModel):
    id: str
    action: str
    entity: str
    entity_id: str
    created_at: datetime
    new_data: str | None = None


class ActivityPage(CamelModel):
    activities: list[Activity] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class Document(CamelModel):
    id: str
    name: str
    mime_type: str
    size_bytes: int
    storage_path: str
    uploaded_at: datetime
    created_at: datetime
