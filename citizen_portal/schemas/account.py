"""Account management schemas"""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from citizen_portal.schemas.common import CamelModel
from citizen_portal.schemas.user_settings import (
    LoginHistoryEntry,
    NotificationSettings,
    PrivacySettings,
    UserSettings,
)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class DeleteAccountRequest(CamelModel):
    password: str = Field(min_length=1)
    reason: str = ""


class TwoFactorSetup(CamelModel):
    qr_code: str
    backup_codes: list[str] = Field(default_factory=list)


class LoginHistoryPage(CamelModel):
    history: list[LoginHistoryEntry] = Field(default_factory=list)
    total: int = 0


class StorageUsage(CamelModel):
    used: int
    limit: int
    breakdown: dict[str, int] = Field(default_factory=dict)


class ExportedSettings(CamelModel):
    user: UserSettings
    notifications: NotificationSettings
    privacy: PrivacySettings
    security: dict[str, Any] = Field(default_factory=dict)


class UserDataExport(CamelModel):
    profile: dict[str, Any] = Field(default_factory=dict)
    applications: list[dict[str, Any]] = Field(default_factory=list)
    notifications: list[dict[str, Any]] = Field(default_factory=list)
    documents: list[dict[str, Any]] = Field(default_factory=list)
    activity_logs: list[dict[str, Any]] = Field(default_factory=list)
    settings: ExportedSettings
    exported_at: datetime


DeliveryChannel = Literal["email", "sms", "push"]


class VerifyTwoFactorRequest(CamelModel):
    token: str = Field(pattern=r"^\d{6}$")


class DeliveryTestRequest(CamelModel):
    type: DeliveryChannel
