"""Settings category schemas"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from citizen_portal.schemas.common import CamelModel

ThemeMode = Literal["light", "dark", "system"]
FontSize = Literal["small", "medium", "large"]
ProfileVisibility = Literal["public", "limited", "private"]


class SettingsCategory(str, Enum):
    """Settings categories, valued by their API path segment."""

    USER = "user"
    NOTIFICATIONS = "notifications"
    PRIVACY = "privacy"
    SECURITY = "security"


class SettingsUpdateModel(BaseModel):
    """Partial update input; unknown or read-only keys are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class UserSettings(CamelModel):
    theme: ThemeMode = "system"
    language: str = "en"
    font_size: FontSize = "medium"
    sound_enabled: bool = True
    auto_save: bool = True
    compact_mode: bool = False


class UserSettingsUpdate(SettingsUpdateModel):
    theme: ThemeMode | None = None
    language: str | None = None
    font_size: FontSize | None = None
    sound_enabled: bool | None = None
    auto_save: bool | None = None
    compact_mode: bool | None = None


class QuietHours(CamelModel):
    enabled: bool = False
    start: str = Field(default="22:00", pattern=r"^\d{2}:\d{2}$")
    end: str = Field(default="08:00", pattern=r"^\d{2}:\d{2}$")


class NotificationSettings(CamelModel):
    email_notifications: bool = True
    sms_notifications: bool = False
    push_notifications: bool = True
    application_updates: bool = True
    payment_reminders: bool = True
    system_announcements: bool = True
    document_expiry: bool = True
    service_updates: bool = False
    account_security: bool = True
    weekly_digest: bool = False
    quiet_hours: QuietHours = Field(default_factory=QuietHours)


class NotificationSettingsUpdate(SettingsUpdateModel):
    email_notifications: bool | None = None
    sms_notifications: bool | None = None
    push_notifications: bool | None = None
    application_updates: bool | None = None
    payment_reminders: bool | None = None
    system_announcements: bool | None = None
    document_expiry: bool | None = None
    service_updates: bool | None = None
    account_security: bool | None = None
    weekly_digest: bool | None = None
    quiet_hours: QuietHours | None = None


class PrivacySettings(CamelModel):
    profile_visibility: ProfileVisibility = "private"
    data_sharing: bool = False
    analytics_opt_out: bool = False
    location_tracking: bool = False
    cookies_accepted: bool = True
    marketing_emails: bool = False
    third_party_integrations: bool = False


class PrivacySettingsUpdate(SettingsUpdateModel):
    profile_visibility: ProfileVisibility | None = None
    data_sharing: bool | None = None
    analytics_opt_out: bool | None = None
    location_tracking: bool | None = None
    cookies_accepted: bool | None = None
    marketing_emails: bool | None = None
    third_party_integrations: bool | None = None


class TrustedDevice(CamelModel):
    id: str
    name: str
    type: str
    last_used: datetime
    location: str | None = None


class LoginHistoryEntry(CamelModel):
    id: str
    timestamp: datetime
    ip_address: str
    location: str | None = None
    user_agent: str
    success: bool


# Collections maintained by the server; never sent on update.
SECURITY_READ_ONLY_FIELDS = frozenset({"trusted_devices", "login_history"})


class SecuritySettings(CamelModel):
    two_factor_enabled: bool = False
    login_notifications: bool = True
    session_timeout: int = Field(default=30, ge=1)
    password_last_changed: datetime | None = None
    trusted_devices: list[TrustedDevice] = Field(default_factory=list)
    login_history: list[LoginHistoryEntry] = Field(default_factory=list)


class SecuritySettingsUpdate(SettingsUpdateModel):
    two_factor_enabled: bool | None = None
    login_notifications: bool | None = None
    session_timeout: int | None = Field(default=None, ge=1)
    password_last_changed: datetime | None = None


SETTINGS_MODELS: dict[SettingsCategory, tuple[type[CamelModel], type[SettingsUpdateModel]]] = {
    SettingsCategory.USER: (UserSettings, UserSettingsUpdate),
    SettingsCategory.NOTIFICATIONS: (NotificationSettings, NotificationSettingsUpdate),
    SettingsCategory.PRIVACY: (PrivacySettings, PrivacySettingsUpdate),
    SettingsCategory.SECURITY: (SecuritySettings, SecuritySettingsUpdate),
}


def default_settings(category: SettingsCategory) -> CamelModel:
    """Return a fresh default value for a settings category."""
    model, _ = SETTINGS_MODELS[category]
    return model()


def writable_payload(category: SettingsCategory, value: CamelModel) -> dict:
    """Return the camelCase body sent on PUT for a category."""
    exclude = set(SECURITY_READ_ONLY_FIELDS) if category is SettingsCategory.SECURITY else None
    return value.to_wire(exclude=exclude)
