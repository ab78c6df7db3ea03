import asyncio

import pytest
from pydantic import ValidationError

from citizen_portal.schemas.user_settings import (
    NotificationSettings,
    PrivacySettings,
    SettingsCategory,
    UserSettings,
    UserSettingsUpdate,
    default_settings,
)
from citizen_portal.services.portal_api import PortalAPIError
from citizen_portal.services.settings import ManualColorScheme, SettingsStore, SettingsSyncService
from citizen_portal.services.settings.sync import SyncResult


class GatedSync:
    """Sync double whose saves wait until the test releases them."""

    def __init__(self, fail_categories=()):
        self.fail_categories = set(fail_categories)
        self.persisted: list[tuple[SettingsCategory, object]] = []
        self.loads = 0
        self.release: asyncio.Event | None = None

    def is_authenticated(self) -> bool:
        return True

    async def load(self, category):
        self.loads += 1
        return SyncResult(category, default_settings(category))

    async def persist(self, category, value):
        self.persisted.append((category, value))
        if self.release is not None:
            await self.release.wait()
        if category in self.fail_categories:
            raise PortalAPIError("Service unavailable", status_code=503)
        return value


UPDATE_CASES = [
    ("get_user_settings", "update_user_settings", {"theme": "dark", "compact_mode": True}),
    ("get_notification_settings", "update_notification_settings", {"sms_notifications": True}),
    ("get_privacy_settings", "update_privacy_settings", {"profile_visibility": "public", "data_sharing": True}),
    ("get_security_settings", "update_security_settings", {"two_factor_enabled": True, "session_timeout": 15}),
]


@pytest.mark.parametrize("getter, updater, partial", UPDATE_CASES)
def test_update_is_visible_before_remote_save_resolves(getter, updater, partial, notifier):
    async def scenario():
        sync = GatedSync()
        sync.release = asyncio.Event()
        store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)
        previous = getattr(store, getter)().model_dump()

        task = asyncio.create_task(getattr(store, updater)(partial))
        await asyncio.sleep(0)

        during = getattr(store, getter)().model_dump()
        saving_during = store.is_saving
        persisted_calls = len(sync.persisted)

        sync.release.set()
        await task
        return previous, during, saving_during, persisted_calls, store

    previous, during, saving_during, persisted_calls, store = asyncio.run(scenario())

    assert during == {**previous, **partial}
    assert saving_during is True
    assert persisted_calls == 1
    assert store.is_saving is False
    assert notifier.successes


def test_update_accepts_update_model_and_camel_case_keys(notifier):
    async def scenario():
        store = SettingsStore(GatedSync(), color_scheme=ManualColorScheme("light"), notifier=notifier)
        await store.update_user_settings(UserSettingsUpdate(font_size="large"))
        await store.update_user_settings({"soundEnabled": False})
        return store

    store = asyncio.run(scenario())

    assert store.get_user_settings().font_size == "large"
    assert store.get_user_settings().sound_enabled is False
    assert store.theme.typography.font_size == 16


def test_user_settings_update_rederives_theme_before_save(notifier):
    async def scenario():
        sync = GatedSync()
        sync.release = asyncio.Event()
        store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)
        task = asyncio.create_task(store.update_user_settings({"theme": "dark"}))
        await asyncio.sleep(0)
        mode_during = store.effective_mode
        sync.release.set()
        await task
        return mode_during

    assert asyncio.run(scenario()) == "dark"


def test_invalid_partial_raises_before_state_changes(notifier):
    sync = GatedSync()
    store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)
    before = store.get_user_settings()

    with pytest.raises(ValidationError):
        asyncio.run(store.update_user_settings({"font_size": "huge"}))
    with pytest.raises(ValidationError):
        asyncio.run(store.update_user_settings({"not_a_setting": True}))
    with pytest.raises(ValidationError):
        asyncio.run(store.update_security_settings({"trusted_devices": []}))

    assert store.get_user_settings() == before
    assert sync.persisted == []
    assert notifier.errors == []


def test_failed_save_keeps_local_value_and_flags_dirty(notifier):
    sync = GatedSync(fail_categories={SettingsCategory.PRIVACY})
    store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)

    result = asyncio.run(store.update_privacy_settings({"profile_visibility": "limited"}))

    assert result.profile_visibility == "limited"
    assert store.get_privacy_settings().profile_visibility == "limited"
    assert store.dirty_categories == {SettingsCategory.PRIVACY}
    assert notifier.errors == ["Service unavailable"]
    assert store.is_saving is False


def test_successful_load_clears_dirty_flag(notifier):
    sync = GatedSync(fail_categories={SettingsCategory.PRIVACY})
    store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)
    asyncio.run(store.update_privacy_settings({"data_sharing": True}))
    assert SettingsCategory.PRIVACY in store.dirty_categories

    asyncio.run(store.load_all())

    assert store.dirty_categories == set()
    assert store.get_privacy_settings() == PrivacySettings()


def test_load_all_uses_defaults_for_failed_category(api_client, portal_state, notifier):
    portal_state.settings[SettingsCategory.USER] = UserSettings(theme="dark", language="fr")
    portal_state.settings[SettingsCategory.PRIVACY] = PrivacySettings(profile_visibility="public")
    portal_state.settings[SettingsCategory.NOTIFICATIONS] = NotificationSettings(
        email_notifications=False,
        sms_notifications=True,
    )
    portal_state.fail("settings.notifications")
    store = SettingsStore(SettingsSyncService(api_client), color_scheme=ManualColorScheme("light"), notifier=notifier)

    asyncio.run(store.load_all())

    notifications = store.get_notification_settings()
    assert notifications == NotificationSettings()
    assert notifications.email_notifications is True
    assert notifications.sms_notifications is False
    assert store.get_user_settings().theme == "dark"
    assert store.get_user_settings().language == "fr"
    assert store.get_privacy_settings().profile_visibility == "public"
    assert store.get_security_settings().password_last_changed is not None
    assert store.effective_mode == "dark"
    assert store.is_loading is False


def test_load_all_without_token_is_silent(api_client, portal_state, token_store, notifier):
    token_store.clear()
    store = SettingsStore(SettingsSyncService(api_client), color_scheme=ManualColorScheme("light"), notifier=notifier)

    asyncio.run(store.load_all())

    assert portal_state.request_counts == {}
    assert store.get_user_settings() == UserSettings()
    assert notifier.errors == []


def test_updates_round_trip_through_stub_api(api_client, portal_state, notifier):
    store = SettingsStore(SettingsSyncService(api_client), color_scheme=ManualColorScheme("light"), notifier=notifier)

    async def scenario():
        await store.init("user-1")
        await store.update_notification_settings(
            {"weekly_digest": True, "quiet_hours": {"enabled": True, "start": "23:00", "end": "07:00"}}
        )
        await store.update_security_settings({"session_timeout": 60})

    asyncio.run(scenario())

    saved_notifications = portal_state.settings[SettingsCategory.NOTIFICATIONS]
    assert saved_notifications.weekly_digest is True
    assert saved_notifications.quiet_hours.start == "23:00"
    assert portal_state.settings[SettingsCategory.SECURITY].session_timeout == 60
    assert len(store.get_security_settings().trusted_devices) == 2
    assert notifier.successes == ["Notification settings updated", "Security settings updated"]
    assert store.dirty_categories == set()


def test_system_mode_follows_os_signal_without_update(notifier):
    color_scheme = ManualColorScheme("dark")
    sync = GatedSync()
    store = SettingsStore(sync, color_scheme=color_scheme, notifier=notifier)
    seen: list[str] = []
    store.subscribe(lambda current: seen.append(current.effective_mode))

    assert store.get_user_settings().theme == "system"
    assert store.effective_mode == "dark"
    assert store.is_watching_system_scheme is True

    color_scheme.set("light")

    assert store.effective_mode == "light"
    assert seen == ["light"]
    assert sync.persisted == []


def test_os_signal_subscription_only_held_in_system_mode(notifier):
    color_scheme = ManualColorScheme("dark")
    store = SettingsStore(GatedSync(), color_scheme=color_scheme, notifier=notifier)
    assert color_scheme.listener_count == 1

    asyncio.run(store.update_user_settings({"theme": "light"}))
    assert color_scheme.listener_count == 0
    assert store.is_watching_system_scheme is False

    color_scheme.set("light")
    color_scheme.set("dark")
    assert store.effective_mode == "light"

    asyncio.run(store.update_user_settings({"theme": "system"}))
    assert color_scheme.listener_count == 1
    assert store.effective_mode == "dark"

    store.dispose()
    assert color_scheme.listener_count == 0
    assert store.identity is None


def test_init_with_new_identity_resets_to_defaults(notifier):
    class _UnauthenticatedSync(GatedSync):
        def is_authenticated(self) -> bool:
            return False

    store = SettingsStore(_UnauthenticatedSync(), color_scheme=ManualColorScheme("light"), notifier=notifier)

    async def scenario():
        await store.init("alice")
        await store.update_user_settings({"language": "de"})
        before_switch = store.get_user_settings().language
        await store.init("bob")
        return before_switch

    assert asyncio.run(scenario()) == "de"
    assert store.identity == "bob"
    assert store.get_user_settings() == UserSettings()


def test_security_score_uses_current_settings(notifier):
    store = SettingsStore(GatedSync(), color_scheme=ManualColorScheme("light"), notifier=notifier)
    asyncio.run(store.update_security_settings({"two_factor_enabled": True}))

    # verified 20 + unknown password age 10 + 2FA 30 + notifications 10 + timeout 10
    assert store.security_score(is_verified=True) == 80


def test_dispose_then_new_identity_starts_from_defaults(notifier):
    class _UnauthenticatedSync(GatedSync):
        def is_authenticated(self) -> bool:
            return False

    color_scheme = ManualColorScheme("light")
    store = SettingsStore(_UnauthenticatedSync(), color_scheme=color_scheme, notifier=notifier)

    async def scenario():
        await store.init("alice")
        await store.update_user_settings({"language": "de", "theme": "dark"})
        await store.update_security_settings({"two_factor_enabled": True})
        store.dispose()
        after_dispose = store.get_user_settings()
        await store.init("bob")
        return after_dispose

    after_dispose = asyncio.run(scenario())

    assert after_dispose == UserSettings()
    assert store.identity == "bob"
    assert store.get_user_settings() == UserSettings()
    assert store.get_security_settings().two_factor_enabled is False
    assert store.effective_mode == "light"
    assert store.dirty_categories == set()
    assert color_scheme.listener_count == 1


class ScriptedSync(GatedSync):
    """Sync double where each save waits on its own gate and fails or succeeds as scripted."""

    def __init__(self, outcomes):
        super().__init__()
        self.outcomes = list(outcomes)
        self.gates: list[asyncio.Event] = []

    async def persist(self, category, value):
        should_fail = self.outcomes.pop(0)
        gate = asyncio.Event()
        self.gates.append(gate)
        self.persisted.append((category, value))
        await gate.wait()
        if should_fail:
            raise PortalAPIError("timeout", status_code=504)
        return value


def test_older_save_failing_after_newer_success_is_not_dirty(notifier):
    sync = ScriptedSync([True, False])
    store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)

    async def scenario():
        first = asyncio.create_task(store.update_privacy_settings({"profile_visibility": "public"}))
        await asyncio.sleep(0)
        second = asyncio.create_task(store.update_privacy_settings({"data_sharing": True}))
        await asyncio.sleep(0)
        older_gate, newer_gate = sync.gates
        newer_gate.set()
        await second
        older_gate.set()
        await first

    asyncio.run(scenario())

    assert store.get_privacy_settings().profile_visibility == "public"
    assert store.get_privacy_settings().data_sharing is True
    assert store.dirty_categories == set()
    assert notifier.errors == []
    assert notifier.successes == ["Privacy settings updated"]


def test_newer_save_failure_still_marks_dirty_after_older_success(notifier):
    sync = ScriptedSync([False, True])
    store = SettingsStore(sync, color_scheme=ManualColorScheme("light"), notifier=notifier)

    async def scenario():
        first = asyncio.create_task(store.update_privacy_settings({"profile_visibility": "public"}))
        await asyncio.sleep(0)
        second = asyncio.create_task(store.update_privacy_settings({"data_sharing": True}))
        await asyncio.sleep(0)
        older_gate, newer_gate = sync.gates
        older_gate.set()
        await first
        newer_gate.set()
        await second

    asyncio.run(scenario())

    assert store.get_privacy_settings().data_sharing is True
    assert store.dirty_categories == {SettingsCategory.PRIVACY}
    assert notifier.errors == ["timeout"]
