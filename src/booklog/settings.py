# ABOUTME: Observable settings store backed by a JSON file.
# ABOUTME: Readers take immutable snapshots; writers notify subscribers with the new snapshot.

import dataclasses
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".booklog" / "settings.json"
SETTINGS_PATH_ENV = "BOOKLOG_SETTINGS"

# Environment variables that supply credentials when the stored value is empty.
_CREDENTIAL_ENV = {
    "isbndb_api_key": "BOOKLOG_ISBNDB_API_KEY",
    "google_books_api_key": "BOOKLOG_GOOGLE_BOOKS_API_KEY",
}


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of user preferences."""

    national_library_enabled: bool = True
    google_books_enabled: bool = True
    isbndb_enabled: bool = True
    open_library_enabled: bool = True
    isbndb_api_key: str = ""
    google_books_api_key: str = ""
    search_language: str = "de"
    clean_titles: bool = True
    book_sort_order: str = "TITLE_ASC"


_FIELD_TYPES: dict[str, type] = {f.name: type(f.default) for f in dataclasses.fields(Settings)}

Subscriber = Callable[[Settings], None]


def parse_value(key: str, raw: str) -> Any:
    """Convert a command-line string into the type a setting expects.

    Raises:
        KeyError: If the setting does not exist.
        ValueError: If the string cannot be converted.
    """
    expected = _FIELD_TYPES[key]
    if expected is bool:
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Expected a boolean for {key}, got {raw!r}")
    return raw


class SettingsStore:
    """JSON-file settings with snapshot, update, and subscribe operations."""

    def __init__(self, path: Path | None = None) -> None:
        env_path = os.environ.get(SETTINGS_PATH_ENV)
        self._path = path or (Path(env_path) if env_path else DEFAULT_SETTINGS_PATH)
        self._lock = threading.Lock()
        self._subscribers: list[Subscriber] = []
        self._current = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def snapshot(self) -> Settings:
        """Current settings, with credentials from the environment filled in."""
        with self._lock:
            current = self._current
        overrides = {
            key: os.environ[env]
            for key, env in _CREDENTIAL_ENV.items()
            if not getattr(current, key) and os.environ.get(env)
        }
        return dataclasses.replace(current, **overrides) if overrides else current

    def update(self, **changes: Any) -> Settings:
        """Validate, persist, and publish a set of changes.

        Raises:
            KeyError: If a key is not a known setting.
            TypeError: If a value has the wrong type.
        """
        for key, value in changes.items():
            if key not in _FIELD_TYPES:
                raise KeyError(f"Unknown setting: {key}")
            if not isinstance(value, _FIELD_TYPES[key]):
                raise TypeError(
                    f"Setting {key} expects {_FIELD_TYPES[key].__name__}, "
                    f"got {type(value).__name__}"
                )

        with self._lock:
            updated = dataclasses.replace(self._current, **changes)
            self._save(updated)
            self._current = updated
            subscribers = list(self._subscribers)

        for callback in subscribers:
            callback(updated)
        return updated

    def reset(self) -> Settings:
        """Restore every setting to its default."""
        defaults = Settings()
        return self.update(**dataclasses.asdict(defaults))

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for future updates; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _load(self) -> Settings:
        if not self._path.exists():
            return Settings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return Settings()
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self._path)
            return Settings()

        known = {
            key: value
            for key, value in data.items()
            if key in _FIELD_TYPES and isinstance(value, _FIELD_TYPES[key])
        }
        return Settings(**known)

    def _save(self, settings: Settings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(dataclasses.asdict(settings), handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
