"""Persistent key/value storage for client-side state such as the auth token."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from citizen_portal.config.settings import settings

logger = logging.getLogger(__name__)


class LocalStorage:
    """String key/value store persisted as a single JSON file.

    Reads go to the file on every call so that a token written by another
    process (for example a login shell) is picked up without restarting.
    Pass ``path=None`` for a purely in-memory store.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._memory: dict[str, str] = {}

    @classmethod
    def default(cls) -> "LocalStorage":
        return cls(settings.LOCAL_STORAGE_PATH)

    def _read(self) -> dict[str, str]:
        if self._path is None:
            return dict(self._memory)
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError):
            logger.warning("Local storage at %s is unreadable; treating it as empty", self._path)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(key): value for key, value in payload.items() if isinstance(value, str)}

    def _write(self, data: dict[str, str]) -> None:
        if self._path is None:
            self._memory = dict(data)
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self._path)

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> list[str]:
        return sorted(self._read())

    def get_json(self, key: str) -> Any:
        """Return a JSON value stored under ``key``, or None when missing or corrupt."""
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring corrupt JSON value for local storage key %s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))


class TokenStore:
    """Bearer token accessor backed by local storage."""

    def __init__(self, storage: LocalStorage | None = None, key: str | None = None) -> None:
        self.storage = storage if storage is not None else LocalStorage.default()
        self.key = key or settings.AUTH_TOKEN_KEY

    def get_token(self) -> str | None:
        token = (self.storage.get_item(self.key) or "").strip()
        return token or None

    def set_token(self, token: str) -> None:
        self.storage.set_item(self.key, token.strip())

    def clear(self) -> None:
        self.storage.remove_item(self.key)
