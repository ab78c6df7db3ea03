"""OS-level color-scheme signal."""
from __future__ import annotations

import logging
from typing import Callable, Literal, Protocol

from citizen_portal.config.settings import settings
from citizen_portal.utils.subscriptions import Subscription

logger = logging.getLogger(__name__)

ColorScheme = Literal["light", "dark"]
ColorSchemeListener = Callable[[ColorScheme], None]


class ColorSchemeSource(Protocol):
    def current(self) -> ColorScheme: ...

    def subscribe(self, listener: ColorSchemeListener) -> Subscription: ...


class ManualColorScheme:
    """Color-scheme source driven by the embedding shell.

    The shell calls :meth:`set` whenever the OS reports a change (for
    example from a ``prefers-color-scheme`` media query listener).
    """

    def __init__(self, initial: ColorScheme | None = None) -> None:
        self._scheme: ColorScheme = initial or settings.SYSTEM_COLOR_SCHEME
        self._listeners: list[ColorSchemeListener] = []

    def current(self) -> ColorScheme:
        return self._scheme

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: ColorSchemeListener) -> Subscription:
        self._listeners.append(listener)

        def _release() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return Subscription(_release)

    def set(self, scheme: ColorScheme) -> None:
        if scheme not in ("light", "dark"):
            raise ValueError(f"Unsupported color scheme: {scheme}")
        if scheme == self._scheme:
            return
        self._scheme = scheme
        logger.debug("OS color scheme changed to %s", scheme)
        for listener in list(self._listeners):
            listener(scheme)
