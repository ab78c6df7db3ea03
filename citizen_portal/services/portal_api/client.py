"""Async HTTP client for the citizen portal API."""

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from citizen_portal.config.settings import settings
from citizen_portal.schemas.account import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    DeliveryChannel,
    DeliveryTestRequest,
    LoginHistoryPage,
    StorageUsage,
    TwoFactorSetup,
    UserDataExport,
    VerifyTwoFactorRequest,
)
from citizen_portal.schemas.common import CamelModel
from citizen_portal.schemas.dashboard import ActivityPage, Application, ApplicationPage, DashboardStats, Document
from citizen_portal.schemas.notification import NotificationPage
from citizen_portal.schemas.user_settings import (
    SETTINGS_MODELS,
    SettingsCategory,
    TrustedDevice,
    writable_payload,
)
from citizen_portal.services.portal_api.base import PortalAPIError, PortalAuthError
from citizen_portal.utils.local_storage import TokenStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

FALLBACK_STORAGE_USAGE = {
    "used": 1_200_000,
    "limit": 104_857_600,
    "breakdown": {
        "documents": 800_000,
        "profilePicture": 200_000,
        "applicationData": 200_000,
    },
}


class PortalAPIClient:
    """Bearer-authenticated client for the portal's JSON API.

    The token is read from local storage on every request, so signing in or
    out in another part of the application takes effect immediately.
    """

    def __init__(
        self,
        token_store: TokenStore | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token_store = token_store if token_store is not None else TokenStore()
        self.base_url = (base_url or settings.PORTAL_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT_SECONDS
        self._transport = transport

    def has_token(self) -> bool:
        return self.token_store.get_token() is not None

    def _headers(self) -> dict[str, str]:
        token = self.token_store.get_token()
        if not token:
            raise PortalAuthError("Missing portal access token")
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            request = exc.request
            request_method = request.method if request is not None else "UNKNOWN"
            request_path = request.url.path if request is not None else "unknown"
            server_message, body_preview = self._extract_error_context(exc.response)

            if status_code in {401, 403}:
                logger.warning(
                    "Portal auth error on %s %s (status=%s, message=%s)",
                    request_method,
                    request_path,
                    status_code,
                    server_message or "-",
                )
                raise PortalAuthError(server_message or "Portal authorization expired or invalid") from exc
            logger.error(
                "Portal API error on %s %s (status=%s, message=%s, body=%s)",
                request_method,
                request_path,
                status_code,
                server_message or "-",
                body_preview or "-",
            )
            raise PortalAPIError(
                server_message or f"Portal API error ({status_code})",
                status_code=status_code,
            ) from exc

    @staticmethod
    def _truncate(value: str, *, max_chars: int = 600) -> str:
        text = value.strip().replace("\n", " ")
        return text if len(text) <= max_chars else f"{text[:max_chars]}..."

    @staticmethod
    def _message_from_payload(payload: Any) -> str | None:
        if not isinstance(payload, dict):
            return None
        for key in ("message", "error", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        errors_field = payload.get("errors")
        if isinstance(errors_field, list) and errors_field:
            first_error = errors_field[0]
            if isinstance(first_error, dict):
                first_message = first_error.get("msg") or first_error.get("message")
                if isinstance(first_message, str) and first_message.strip():
                    return first_message.strip()
            elif isinstance(first_error, str) and first_error.strip():
                return first_error.strip()
        return None

    @classmethod
    def _extract_error_context(cls, response: httpx.Response) -> tuple[str | None, str | None]:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        server_message = cls._message_from_payload(payload)

        body_preview: str | None = None
        if response.content:
            body_preview = cls._truncate(response.content.decode("utf-8", errors="replace"))
        if not body_preview and server_message:
            body_preview = server_message
        return server_message, body_preview

    @classmethod
    def _unwrap(cls, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise PortalAPIError("Portal API returned invalid JSON", status_code=response.status_code) from exc
        if isinstance(payload, dict) and "success" in payload:
            if payload.get("success") is False:
                raise PortalAPIError(
                    cls._message_from_payload(payload) or "Portal API reported a failure",
                    status_code=response.status_code,
                )
            return payload.get("data")
        return payload

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=headers, params=params, json=json)
        except httpx.TimeoutException as exc:
            logger.warning("Portal request %s %s timed out", method, path)
            raise PortalAPIError(f"Portal API request timed out ({method} {path})") from exc
        except httpx.RequestError as exc:
            logger.warning("Portal request %s %s failed: %s", method, path, exc)
            raise PortalAPIError(f"Portal API request failed ({method} {path})") from exc
        self._raise_for_status(response)
        return self._unwrap(response)

    @staticmethod
    def _parse(model: type[ModelT], data: Any, what: str) -> ModelT:
        if data is None:
            raise PortalAPIError(f"Portal API returned no {what}")
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("Portal API returned malformed %s: %s", what, exc)
            raise PortalAPIError(f"Portal API returned malformed {what}") from exc

    @staticmethod
    def _parse_list(model: type[ModelT], data: Any, what: str) -> list[ModelT]:
        if data is None:
            return []
        try:
            return TypeAdapter(list[model]).validate_python(data)
        except ValidationError as exc:
            logger.warning("Portal API returned malformed %s: %s", what, exc)
            raise PortalAPIError(f"Portal API returned malformed {what}") from exc

    # Settings

    async def get_settings(self, category: SettingsCategory) -> CamelModel:
        model, _ = SETTINGS_MODELS[category]
        data = await self._request("GET", f"/settings/{category.value}")
        return self._parse(model, data, f"{category.value} settings")

    async def update_settings(self, category: SettingsCategory, value: CamelModel) -> CamelModel:
        """PUT the writable fields of ``value``; returns the server's copy when it sends one."""
        model, _ = SETTINGS_MODELS[category]
        data = await self._request("PUT", f"/settings/{category.value}", json=writable_payload(category, value))
        if data is None:
            return value
        return self._parse(model, data, f"{category.value} settings")

    # Notifications

    async def list_notifications(self, limit: int = 10, page: int = 1) -> NotificationPage:
        data = await self._request(
            "GET",
            "/profile/notifications",
            params={"limit": max(1, limit), "page": max(1, page)},
        )
        if data is None:
            return NotificationPage()
        return self._parse(NotificationPage, data, "notifications")

    async def mark_notification_read(self, notification_id: str) -> None:
        await self._request("PUT", f"/profile/notifications/{quote(str(notification_id), safe='')}/read")

    async def delete_notification(self, notification_id: str) -> None:
        await self._request("DELETE", f"/profile/notifications/{quote(str(notification_id), safe='')}")

    # Dashboard read models

    async def get_dashboard_stats(self) -> DashboardStats:
        data = await self._request("GET", "/profile/stats")
        return self._parse(DashboardStats, data, "dashboard stats")

    async def list_applications(self, limit: int = 10, page: int = 1) -> list[Application]:
        data = await self._request(
            "GET",
            "/profile/applications",
            params={"limit": max(1, limit), "page": max(1, page)},
        )
        if data is None:
            return []
        return self._parse(ApplicationPage, data, "applications").applications

    async def list_activity(self, limit: int = 5, page: int = 1) -> ActivityPage:
        data = await self._request(
            "GET",
            "/profile/activity",
            params={"limit": max(1, limit), "page": max(1, page)},
        )
        if data is None:
            return ActivityPage()
        return self._parse(ActivityPage, data, "activity")

    async def list_documents(self) -> list[Document]:
        data = await self._request("GET", "/profile/documents")
        return self._parse_list(Document, data, "documents")

    # Account and security actions

    async def change_password(self, current_password: str, new_password: str) -> None:
        body = ChangePasswordRequest(current_password=current_password, new_password=new_password)
        await self._request("PUT", "/profile/change-password", json=body.to_wire())

    async def enable_two_factor(self) -> TwoFactorSetup:
        data = await self._request("POST", "/settings/2fa/enable")
        return self._parse(TwoFactorSetup, data, "two-factor setup")

    async def disable_two_factor(self) -> None:
        await self._request("POST", "/settings/2fa/disable")

    async def verify_two_factor(self, token: str) -> None:
        await self._request("POST", "/settings/2fa/verify", json=VerifyTwoFactorRequest(token=token).to_wire())

    async def list_active_sessions(self) -> list[TrustedDevice]:
        data = await self._request("GET", "/settings/sessions")
        return self._parse_list(TrustedDevice, data, "sessions")

    async def revoke_session(self, device_id: str) -> None:
        await self._request("DELETE", f"/settings/sessions/{quote(str(device_id), safe='')}")

    async def logout_all_devices(self) -> None:
        await self._request("POST", "/settings/sessions/logout-all")

    async def get_login_history(self, page: int = 1, limit: int = 20) -> LoginHistoryPage:
        data = await self._request(
            "GET",
            "/settings/login-history",
            params={"page": max(1, page), "limit": max(1, limit)},
        )
        if data is None:
            return LoginHistoryPage()
        return self._parse(LoginHistoryPage, data, "login history")

    async def export_user_data(self) -> UserDataExport:
        data = await self._request("GET", "/settings/export-data")
        return self._parse(UserDataExport, data, "data export")

    async def delete_account(self, password: str, reason: str = "") -> None:
        body = DeleteAccountRequest(password=password, reason=reason)
        await self._request("POST", "/settings/delete-account", json=body.to_wire())

    async def get_storage_usage(self) -> StorageUsage:
        """Return storage usage, or a fixed estimate when the server cannot say."""
        try:
            data = await self._request("GET", "/settings/storage")
            return self._parse(StorageUsage, data, "storage usage")
        except PortalAPIError as exc:
            logger.warning("Falling back to estimated storage usage: %s", exc)
            return StorageUsage.model_validate(FALLBACK_STORAGE_USAGE)

    async def test_notification_delivery(self, channel: DeliveryChannel) -> None:
        await self._request("POST", "/settings/test-notification", json=DeliveryTestRequest(type=channel).to_wire())
