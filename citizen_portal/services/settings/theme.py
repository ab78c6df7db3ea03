"""Presentation theme derived from display settings."""
from __future__ import annotations

from dataclasses import dataclass

from citizen_portal.schemas.user_settings import FontSize, ThemeMode
from citizen_portal.services.settings.color_scheme import ColorScheme, ColorSchemeSource

FONT_FAMILY = ",".join(
    [
        "-apple-system",
        "BlinkMacSystemFont",
        '"Segoe UI"',
        "Roboto",
        '"Helvetica Neue"',
        "Arial",
        "sans-serif",
    ]
)

BASE_FONT_SIZES: dict[str, int] = {"small": 12, "medium": 14, "large": 16}


@dataclass(frozen=True)
class ColorSet:
    main: str
    light: str | None = None
    dark: str | None = None
    contrast_text: str | None = None


@dataclass(frozen=True)
class Palette:
    mode: ColorScheme
    primary: ColorSet
    secondary: ColorSet
    error: ColorSet
    warning: ColorSet
    info: ColorSet
    success: ColorSet
    background_default: str
    background_paper: str
    text_primary: str
    text_secondary: str
    card_shadow: str
    card_hover_shadow: str


@dataclass(frozen=True)
class HeadingStyle:
    font_weight: int
    font_size: str


@dataclass(frozen=True)
class Typography:
    font_family: str
    font_size: int
    h1: HeadingStyle
    h2: HeadingStyle
    h3: HeadingStyle
    h4: HeadingStyle
    h5: HeadingStyle
    h6: HeadingStyle
    button_text_transform: str = "none"
    button_font_weight: int = 500


@dataclass(frozen=True)
class ThemeSpec:
    palette: Palette
    typography: Typography
    spacing: int = 8
    shape_radius: int = 8

    @property
    def mode(self) -> ColorScheme:
        return self.palette.mode


def resolve_effective_mode(mode: ThemeMode, color_scheme: ColorSchemeSource | None = None) -> ColorScheme:
    """Collapse ``system`` against the OS signal as it reads right now."""
    if mode == "system":
        return color_scheme.current() if color_scheme is not None else "light"
    if mode not in ("light", "dark"):
        raise ValueError(f"Unsupported theme mode: {mode}")
    return mode


def _palette(mode: ColorScheme) -> Palette:
    is_dark = mode == "dark"
    return Palette(
        mode=mode,
        primary=ColorSet(main="#1976d2", light="#42a5f5", dark="#1565c0", contrast_text="#ffffff"),
        secondary=ColorSet(main="#dc004e", light="#ff5983", dark="#9a0036", contrast_text="#ffffff"),
        error=ColorSet(main="#f44336"),
        warning=ColorSet(main="#ff9800"),
        info=ColorSet(main="#2196f3"),
        success=ColorSet(main="#4caf50"),
        background_default="#121212" if is_dark else "#f5f5f5",
        background_paper="#1e1e1e" if is_dark else "#ffffff",
        text_primary="#ffffff" if is_dark else "#212121",
        text_secondary="#b0b0b0" if is_dark else "#757575",
        card_shadow="0 2px 8px rgba(0,0,0,0.3)" if is_dark else "0 2px 8px rgba(0,0,0,0.1)",
        card_hover_shadow="0 4px 16px rgba(0,0,0,0.4)" if is_dark else "0 4px 16px rgba(0,0,0,0.15)",
    )


def _typography(font_size: FontSize) -> Typography:
    if font_size not in BASE_FONT_SIZES:
        raise ValueError(f"Unsupported font size: {font_size}")
    return Typography(
        font_family=FONT_FAMILY,
        font_size=BASE_FONT_SIZES[font_size],
        h1=HeadingStyle(600, "2.5rem"),
        h2=HeadingStyle(600, "2rem"),
        h3=HeadingStyle(500, "1.75rem"),
        h4=HeadingStyle(500, "1.5rem"),
        h5=HeadingStyle(500, "1.25rem"),
        h6=HeadingStyle(500, "1rem"),
    )


def derive_theme(
    mode: ThemeMode,
    font_size: FontSize,
    color_scheme: ColorSchemeSource | None = None,
) -> ThemeSpec:
    """Build the theme for a display mode and font size.

    Deterministic for a given effective mode and font size: light and dark
    themes differ only in their palette, and typography depends only on the
    font size.
    """
    return ThemeSpec(
        palette=_palette(resolve_effective_mode(mode, color_scheme)),
        typography=_typography(font_size),
    )
