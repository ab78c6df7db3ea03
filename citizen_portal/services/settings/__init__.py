from citizen_portal.services.settings.color_scheme import ColorSchemeSource, ManualColorScheme
from citizen_portal.services.settings.security import calculate_security_score
from citizen_portal.services.settings.store import SettingsStore
from citizen_portal.services.settings.sync import SettingsSyncService, SyncResult
from citizen_portal.services.settings.theme import ThemeSpec, derive_theme, resolve_effective_mode

__all__ = [
    "ColorSchemeSource",
    "ManualColorScheme",
    "SettingsStore",
    "SettingsSyncService",
    "SyncResult",
    "ThemeSpec",
    "calculate_security_score",
    "derive_theme",
    "resolve_effective_mode",
]
