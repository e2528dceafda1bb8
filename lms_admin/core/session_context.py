"""Explicit session context: who is acting, and their persisted preferences.

Preferences go through a small key-value storage abstraction so the API,
tests and a future desktop client can each plug in their own persistence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from threading import Lock

from lms_admin.constants.network_constants import ADMIN_ROLES

logger = logging.getLogger(__name__)

THEME_KEY = "theme"
THEMES: tuple[str, ...] = ("light", "dark")
DEFAULT_THEME = "light"


class KeyValueStorage(ABC):
    @abstractmethod
    def get(self, key: str, default: str | None = None) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStorage(KeyValueStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value


class JsonFileKeyValueStorage(KeyValueStorage):
    """Stores values in a flat JSON object on disk."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = Lock()

    def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._read()
            values[key] = value
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text(json.dumps(values, indent=2), encoding="utf-8")

    def _read(self) -> dict[str, str]:
        if not self._file_path.exists():
            return {}
        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable settings file %s", self._file_path)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}


@dataclass(slots=True, frozen=True)
class CurrentUser:
    uid: str
    role: str
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


@dataclass(slots=True)
class SessionContext:
    storage: KeyValueStorage
    user: CurrentUser | None = field(default=None)

    @property
    def theme(self) -> str:
        value = self.storage.get(THEME_KEY, DEFAULT_THEME)
        return value if value in THEMES else DEFAULT_THEME

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Theme must be one of {', '.join(THEMES)}.")
        self.storage.set(THEME_KEY, theme)

    def toggle_theme(self) -> str:
        theme = "dark" if self.theme == "light" else "light"
        self.set_theme(theme)
        return theme

    def for_user(self, user: CurrentUser | None) -> SessionContext:
        return SessionContext(storage=self.storage, user=user)
