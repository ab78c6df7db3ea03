"""In-memory settings state for one signed-in session."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping

from citizen_portal.schemas.common import CamelModel
from citizen_portal.schemas.user_settings import (
    SETTINGS_MODELS,
    NotificationSettings,
    PrivacySettings,
    SecuritySettings,
    SettingsCategory,
    SettingsUpdateModel,
    UserSettings,
    default_settings,
)
from citizen_portal.services.notices import LoggingNotifier, Notifier
from citizen_portal.services.portal_api import PortalError
from citizen_portal.services.settings.color_scheme import ColorScheme, ColorSchemeSource, ManualColorScheme
from citizen_portal.services.settings.security import calculate_security_score
from citizen_portal.services.settings.sync import SettingsSyncService
from citizen_portal.services.settings.theme import ThemeSpec, derive_theme
from citizen_portal.utils.subscriptions import Subscription

logger = logging.getLogger(__name__)

SettingsListener = Callable[["SettingsStore"], None]
PartialSettings = SettingsUpdateModel | Mapping[str, Any]

SUCCESS_MESSAGES = {
    SettingsCategory.USER: "Settings updated successfully",
    SettingsCategory.NOTIFICATIONS: "Notification settings updated",
    SettingsCategory.PRIVACY: "Privacy settings updated",
    SettingsCategory.SECURITY: "Security settings updated",
}

FAILURE_MESSAGES = {
    SettingsCategory.USER: "Failed to update settings",
    SettingsCategory.NOTIFICATIONS: "Failed to update notification settings",
    SettingsCategory.PRIVACY: "Failed to update privacy settings",
    SettingsCategory.SECURITY: "Failed to update security settings",
}


class SettingsStore:
    """Authoritative copy of the four settings categories plus the derived theme.

    Construct one per application and pass it to the views that need it.
    Call :meth:`init` when an identity signs in and :meth:`dispose` when the
    session ends.

    Updates are optimistic: the merged value is visible immediately and the
    theme is re-derived before the remote save starts. A failed save keeps the
    local value and marks the category dirty until a later successful load or
    save of that category.
    """

    def __init__(
        self,
        sync: SettingsSyncService,
        color_scheme: ColorSchemeSource | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._sync = sync
        self._color_scheme = color_scheme if color_scheme is not None else ManualColorScheme()
        self._notifier = notifier if notifier is not None else LoggingNotifier()
        self._values: dict[SettingsCategory, CamelModel] = {}
        self._listeners: list[SettingsListener] = []
        self._system_subscription: Subscription | None = None
        self._saves_in_flight = 0
        self._disposed = False
        self.identity: str | None = None
        self.is_loading = False
        self.dirty_categories: set[SettingsCategory] = set()
        self._reset_values()

    # Lifecycle

    async def init(self, identity: str) -> None:
        """Bind the store to a signed-in identity and load its settings."""
        if self.identity is not None and self.identity != identity:
            logger.info("Settings identity changed; resetting to defaults")
            self._reset_values()
        self.identity = identity
        self._disposed = False
        self._sync_system_subscription()
        await self.load_all()

    def dispose(self) -> None:
        """Release the OS color-scheme subscription, drop listeners and forget loaded values."""
        self._disposed = True
        self._listeners.clear()
        self._reset_values()
        self.identity = None

    def _reset_values(self) -> None:
        self._values = {category: default_settings(category) for category in SettingsCategory}
        self.dirty_categories.clear()
        self._theme = self._derive_theme()
        self._sync_system_subscription()

    # Read access

    def get_user_settings(self) -> UserSettings:
        return self._values[SettingsCategory.USER]  # type: ignore[return-value]

    def get_notification_settings(self) -> NotificationSettings:
        return self._values[SettingsCategory.NOTIFICATIONS]  # type: ignore[return-value]

    def get_privacy_settings(self) -> PrivacySettings:
        return self._values[SettingsCategory.PRIVACY]  # type: ignore[return-value]

    def get_security_settings(self) -> SecuritySettings:
        return self._values[SettingsCategory.SECURITY]  # type: ignore[return-value]

    @property
    def theme(self) -> ThemeSpec:
        return self._theme

    @property
    def effective_mode(self) -> ColorScheme:
        return self._theme.mode

    @property
    def is_saving(self) -> bool:
        return self._saves_in_flight > 0

    @property
    def is_watching_system_scheme(self) -> bool:
        return self._system_subscription is not None

    def security_score(self, is_verified: bool) -> int:
        return calculate_security_score(self.get_security_settings(), is_verified)

    # Change listeners

    def subscribe(self, listener: SettingsListener) -> Subscription:
        self._listeners.append(listener)

        def _release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_release)

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Settings listener failed")

    # Theme

    def _derive_theme(self) -> ThemeSpec:
        user_settings = self.get_user_settings()
        return derive_theme(user_settings.theme, user_settings.font_size, self._color_scheme)

    def _sync_system_subscription(self) -> None:
        wants_signal = not self._disposed and self.get_user_settings().theme == "system"
        if wants_signal and self._system_subscription is None:
            self._system_subscription = self._color_scheme.subscribe(self._on_system_scheme_changed)
        elif not wants_signal and self._system_subscription is not None:
            self._system_subscription.unsubscribe()
            self._system_subscription = None

    def _on_system_scheme_changed(self, scheme: ColorScheme) -> None:
        if self.get_user_settings().theme != "system":
            return
        logger.debug("Re-deriving theme for OS color scheme %s", scheme)
        self._theme = self._derive_theme()
        self._emit()

    def _apply_user_settings_change(self) -> None:
        self._theme = self._derive_theme()
        self._sync_system_subscription()

    # Loading

    async def load_all(self) -> None:
        """Fetch all four categories concurrently; failed ones fall back to defaults."""
        if not self._sync.is_authenticated():
            logger.debug("No access token; skipping settings load")
            return

        self.is_loading = True
        self._emit()
        try:
            categories = list(SettingsCategory)
            results = await asyncio.gather(
                *(self._sync.load(category) for category in categories),
                return_exceptions=True,
            )
            for category, result in zip(categories, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    logger.error(
                        "Loading %s settings raised unexpectedly; using defaults",
                        category.value,
                        exc_info=result,
                    )
                    self._values[category] = default_settings(category)
                    continue
                self._values[category] = result.value
                if result.ok:
                    self.dirty_categories.discard(category)
            self._apply_user_settings_change()
        finally:
            self.is_loading = False
            self._emit()

    # Updates

    async def update_user_settings(self, partial: PartialSettings) -> UserSettings:
        return await self._update(SettingsCategory.USER, partial)  # type: ignore[return-value]

    async def update_notification_settings(self, partial: PartialSettings) -> NotificationSettings:
        return await self._update(SettingsCategory.NOTIFICATIONS, partial)  # type: ignore[return-value]

    async def update_privacy_settings(self, partial: PartialSettings) -> PrivacySettings:
        return await self._update(SettingsCategory.PRIVACY, partial)  # type: ignore[return-value]

    async def update_security_settings(self, partial: PartialSettings) -> SecuritySettings:
        return await self._update(SettingsCategory.SECURITY, partial)  # type: ignore[return-value]

    def _merge(self, category: SettingsCategory, partial: PartialSettings) -> CamelModel:
        model, update_model = SETTINGS_MODELS[category]
        update = partial if isinstance(partial, update_model) else update_model.model_validate(dict(partial))
        changes = update.model_dump(exclude_unset=True)
        return model.model_validate({**self._values[category].model_dump(), **changes})

    async def _update(self, category: SettingsCategory, partial: PartialSettings) -> CamelModel:
        # Raises pydantic.ValidationError before any state changes.
        merged = self._merge(category, partial)
        self._values[category] = merged
        if category is SettingsCategory.USER:
            self._apply_user_settings_change()
        self._saves_in_flight += 1
        self._emit()

        try:
            saved = await self._sync.persist(category, merged)
        except PortalError as exc:
            if self._values[category] is merged:
                self.dirty_categories.add(category)
                logger.warning("Saving %s settings failed; keeping local changes: %s", category.value, exc)
                self._notifier.error(str(exc) or FAILURE_MESSAGES[category])
            else:
                # A newer save carries this edit and reports its own outcome.
                logger.info("Superseded %s settings save failed: %s", category.value, exc)
        else:
            # A newer local edit made while this save was in flight wins.
            if self._values[category] is merged:
                self._values[category] = saved
                if category is SettingsCategory.USER:
                    self._apply_user_settings_change()
                self.dirty_categories.discard(category)
            self._notifier.success(SUCCESS_MESSAGES[category])
        finally:
            self._saves_in_flight -= 1
            self._emit()
        return self._values[category]
