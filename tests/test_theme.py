import dataclasses

import pytest

from citizen_portal.services.settings import ManualColorScheme, derive_theme, resolve_effective_mode


def test_light_and_dark_differ_only_in_palette():
    light = derive_theme("light", "medium")
    dark = derive_theme("dark", "medium")

    assert light.palette != dark.palette
    assert light.typography == dark.typography
    assert dataclasses.replace(light, palette=dark.palette) == dark
    assert light.mode == "light"
    assert dark.mode == "dark"


def test_derivation_is_deterministic():
    assert derive_theme("dark", "large") == derive_theme("dark", "large")


@pytest.mark.parametrize("font_size, base", [("small", 12), ("medium", 14), ("large", 16)])
def test_font_size_sets_base_typography(font_size, base):
    theme = derive_theme("light", font_size)
    assert theme.typography.font_size == base
    assert theme.palette == derive_theme("light", "medium").palette


def test_dark_palette_uses_dark_surfaces():
    palette = derive_theme("dark", "medium").palette
    assert palette.background_default == "#121212"
    assert palette.text_primary == "#ffffff"


def test_system_mode_resolves_against_color_scheme():
    assert resolve_effective_mode("system", ManualColorScheme("dark")) == "dark"
    assert resolve_effective_mode("system", ManualColorScheme("light")) == "light"
    assert resolve_effective_mode("system") == "light"
    assert resolve_effective_mode("dark", ManualColorScheme("light")) == "dark"
    assert derive_theme("system", "medium", ManualColorScheme("dark")) == derive_theme("dark", "medium")


def test_unknown_mode_or_font_size_is_rejected():
    with pytest.raises(ValueError):
        resolve_effective_mode("sepia")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        derive_theme("light", "huge")  # type: ignore[arg-type]


def test_color_scheme_notifies_only_on_change():
    color_scheme = ManualColorScheme("light")
    seen: list[str] = []
    subscription = color_scheme.subscribe(seen.append)

    color_scheme.set("light")
    color_scheme.set("dark")
    subscription.unsubscribe()
    subscription.unsubscribe()
    color_scheme.set("light")

    assert seen == ["dark"]
    assert subscription.active is False
    assert color_scheme.listener_count == 0
    with pytest.raises(ValueError):
        color_scheme.set("blue")  # type: ignore[arg-type]
