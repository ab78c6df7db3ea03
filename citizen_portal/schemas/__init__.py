from citizen_portal.schemas.account import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    LoginHistoryPage,
    StorageUsage,
    TwoFactorSetup,
    UserDataExport,
)
from citizen_portal.schemas.common import CamelModel, Envelope, Pagination
from citizen_portal.schemas.dashboard import (
    Activity,
    ActivityPage,
    Application,
    ApplicationPage,
    DashboardStats,
    Document,
)
from citizen_portal.schemas.notification import Notification, NotificationPage
from citizen_portal.schemas.user_settings import (
    LoginHistoryEntry,
    NotificationSettings,
    NotificationSettingsUpdate,
    PrivacySettings,
    PrivacySettingsUpdate,
    QuietHours,
    SecuritySettings,
    SecuritySettingsUpdate,
    SettingsCategory,
    TrustedDevice,
    UserSettings,
    UserSettingsUpdate,
    default_settings,
)

__all__ = [
    "Activity",
    "ActivityPage",
    "Application",
    "ApplicationPage",
    "CamelModel",
    "ChangePasswordRequest",
    "DashboardStats",
    "DeleteAccountRequest",
    "Document",
    "Envelope",
    "LoginHistoryEntry",
    "LoginHistoryPage",
    "Notification",
    "NotificationPage",
    "NotificationSettings",
    "NotificationSettingsUpdate",
    "Pagination",
    "PrivacySettings",
    "PrivacySettingsUpdate",
    "QuietHours",
    "SecuritySettings",
    "SecuritySettingsUpdate",
    "SettingsCategory",
    "StorageUsage",
    "TrustedDevice",
    "TwoFactorSetup",
    "UserDataExport",
    "UserSettings",
    "UserSettingsUpdate",
    "default_settings",
]
