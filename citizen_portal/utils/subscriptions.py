"""Listener registration handles."""
from __future__ import annotations

from typing import Callable


class Subscription:
    """Handle for a listener registration; ``unsubscribe`` is idempotent."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()
