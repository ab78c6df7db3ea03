"""Notification schemas"""

from datetime import datetime

from pydantic import Field

from citizen_portal.schemas.common import CamelModel, Pagination


class Notification(CamelModel):
    id: str
    title: str = "Notification"
    message: str = ""
    type: str = "INFO"
    created_at: datetime
    is_read: bool = False
    action_url: str | None = None
    application_id: str | None = None


class NotificationPage(CamelModel):
    notifications: list[Notification] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
