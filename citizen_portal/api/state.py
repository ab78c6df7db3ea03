"""In-memory data behind the stub portal API."""
from __future__ import annotations

import secrets
from datetime import datetime

from citizen_portal.schemas.account import StorageUsage, TwoFactorSetup
from citizen_portal.schemas.dashboard import Activity, Application, ApplicationCounts, DashboardStats, Document
from citizen_portal.schemas.notification import Notification
from citizen_portal.schemas.user_settings import (
    LoginHistoryEntry,
    SecuritySettings,
    SettingsCategory,
    TrustedDevice,
    default_settings,
)
from citizen_portal.utils.timestamps import ago, utcnow

DEFAULT_TOKEN = "dev-token"
DEFAULT_PASSWORD = "password123"
CURRENT_SESSION_ID = "session-current"
STORAGE_LIMIT_BYTES = 104_857_600
PROFILE_PICTURE_BYTES = 200_000
LOGIN_HISTORY_SNAPSHOT = 10

HOUR = 60 * 60
DAY = 24 * HOUR


class PortalState:
    """Mutable account data for a single demo citizen.

    ``failures`` maps a route key (for example ``"settings.notifications"``
    or ``"profile.stats"``) to an HTTP status the route answers with instead
    of its normal response.
    """

    def __init__(self, token: str | None = DEFAULT_TOKEN, now: datetime | None = None, seed: bool = True) -> None:
        self.token = token
        self.password = DEFAULT_PASSWORD
        self.failures: dict[str, int] = {}
        self.request_counts: dict[str, int] = {}
        self.two_factor_pending = False
        self.deleted = False
        self.profile = {
            "id": "user-1",
            "email": "citizen@example.gov",
            "firstName": "Alex",
            "lastName": "Citizen",
            "isVerified": True,
        }
        self.settings = {category: default_settings(category) for category in SettingsCategory}
        self.notifications: list[Notification] = []
        self.applications: list[Application] = []
        self.activities: list[Activity] = []
        self.documents: list[Document] = []
        self.sessions: list[TrustedDevice] = []
        self.login_history: list[LoginHistoryEntry] = []
        if seed:
            self._seed(now or utcnow())

    def _seed(self, now: datetime) -> None:
        self.applications = [
            Application(
                id="app-1",
                type="BIRTH_CERTIFICATE",
                status="APPROVED",
                created_at=ago(20 * DAY, now),
                updated_at=ago(12 * DAY, now),
            ),
            Application(
                id="app-2",
                type="IDENTIFICATION_LETTER",
                status="PENDING",
                created_at=ago(6 * DAY, now),
                updated_at=ago(2 * DAY, now),
            ),
            Application(
                id="app-3",
                type="BUSINESS_REGISTRATION",
                status="REJECTED",
                created_at=ago(30 * DAY, now),
                updated_at=ago(25 * DAY, now),
                data={"reason": "Missing tax registration"},
            ),
        ]
        self.notifications = [
            Notification(
                id="notif-1",
                title="Application approved",
                message="Your birth certificate application was approved.",
                type="SUCCESS",
                created_at=ago(12 * DAY, now),
                is_read=True,
                application_id="app-1",
            ),
            Notification(
                id="notif-2",
                title="Document required",
                message="Upload a recent photo to continue.",
                type="WARNING",
                created_at=ago(2 * DAY, now),
                application_id="app-2",
                action_url="/applications/app-2",
            ),
            Notification(
                id="notif-3",
                title="Scheduled maintenance",
                message="The portal will be unavailable on Sunday night.",
                type="INFO",
                created_at=ago(3 * HOUR, now),
            ),
        ]
        self.activities = [
            Activity(
                id="act-1",
                action="CREATE",
                entity="Application",
                entity_id="app-2",
                created_at=ago(6 * DAY, now),
            ),
            Activity(
                id="act-2",
                action="UPLOAD",
                entity="Document",
                entity_id="doc-1",
                created_at=ago(5 * DAY, now),
            ),
            Activity(
                id="act-3",
                action="LOGIN",
                entity="User",
                entity_id="user-1",
                created_at=ago(HOUR, now),
            ),
        ]
        self.documents = [
            Document(
                id="doc-1",
                name="national-id.pdf",
                mime_type="application/pdf",
                size_bytes=482_000,
                storage_path="documents/user-1/national-id.pdf",
                uploaded_at=ago(5 * DAY, now),
                created_at=ago(5 * DAY, now),
            ),
            Document(
                id="doc-2",
                name="proof-of-address.png",
                mime_type="image/png",
                size_bytes=318_000,
                storage_path="documents/user-1/proof-of-address.png",
                uploaded_at=ago(4 * DAY, now),
                created_at=ago(4 * DAY, now),
            ),
        ]
        self.sessions = [
            TrustedDevice(
                id=CURRENT_SESSION_ID,
                name="Firefox on Linux",
                type="desktop",
                last_used=now,
                location="Springfield",
            ),
            TrustedDevice(
                id="session-phone",
                name="Portal app on Android",
                type="mobile",
                last_used=ago(2 * DAY, now),
                location="Springfield",
            ),
        ]
        self.login_history = [
            LoginHistoryEntry(
                id=f"login-{index}",
                timestamp=ago(index * DAY + HOUR, now),
                ip_address=f"203.0.113.{10 + index}",
                location="Springfield",
                user_agent="Mozilla/5.0",
                success=index != 3,
            )
            for index in range(1, 13)
        ]
        self.settings[SettingsCategory.SECURITY] = SecuritySettings(password_last_changed=ago(40 * DAY, now))

    # Auth

    def accepts(self, token: str | None) -> bool:
        if not token or self.deleted or self.token is None:
            return False
        return token == self.token

    # Failure injection

    def fail(self, key: str, status_code: int = 500) -> None:
        self.failures[key] = status_code

    def recover(self, key: str | None = None) -> None:
        if key is None:
            self.failures.clear()
        else:
            self.failures.pop(key, None)

    def record(self, key: str) -> None:
        self.request_counts[key] = self.request_counts.get(key, 0) + 1

    # Read models

    def security_view(self) -> SecuritySettings:
        current: SecuritySettings = self.settings[SettingsCategory.SECURITY]  # type: ignore[assignment]
        return current.model_copy(
            update={
                "trusted_devices": list(self.sessions),
                "login_history": self.login_history[:LOGIN_HISTORY_SNAPSHOT],
            }
        )

    def settings_view(self, category: SettingsCategory):
        if category is SettingsCategory.SECURITY:
            return self.security_view()
        return self.settings[category]

    def sorted_notifications(self) -> list[Notification]:
        return sorted(self.notifications, key=lambda item: item.created_at, reverse=True)

    def find_notification(self, notification_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    def stats(self) -> DashboardStats:
        counts = ApplicationCounts(total=len(self.applications))
        for application in self.applications:
            if application.status == "PENDING":
                counts.pending += 1
            elif application.status == "APPROVED":
                counts.approved += 1
            elif application.status == "REJECTED":
                counts.rejected += 1
        return DashboardStats(
            applications=counts,
            recent_activities=len(self.activities),
            unread_notifications=sum(1 for item in self.notifications if not item.is_read),
        )

    def storage_usage(self) -> StorageUsage:
        document_bytes = sum(document.size_bytes for document in self.documents)
        application_bytes = sum(len(str(application.data or {})) for application in self.applications)
        return StorageUsage(
            used=document_bytes + PROFILE_PICTURE_BYTES + application_bytes,
            limit=STORAGE_LIMIT_BYTES,
            breakdown={
                "documents": document_bytes,
                "profilePicture": PROFILE_PICTURE_BYTES,
                "applicationData": application_bytes,
            },
        )

    # Account actions

    def start_two_factor(self) -> TwoFactorSetup:
        self.two_factor_pending = True
        secret = secrets.token_hex(10)
        return TwoFactorSetup(
            qr_code=f"otpauth://totp/CitizenPortal:{self.profile['email']}?secret={secret}",
            backup_codes=[secrets.token_hex(4) for _ in range(8)],
        )

    def set_two_factor(self, enabled: bool) -> None:
        security = self.settings[SettingsCategory.SECURITY]
        self.settings[SettingsCategory.SECURITY] = security.model_copy(update={"two_factor_enabled": enabled})
        self.two_factor_pending = False

    def change_password(self, new_password: str, now: datetime | None = None) -> None:
        self.password = new_password
        security = self.settings[SettingsCategory.SECURITY]
        self.settings[SettingsCategory.SECURITY] = security.model_copy(
            update={"password_last_changed": now or utcnow()}
        )
