"""Durable local key/value storage.

A single JSON file holding string keys, read and written whole on each
access the way the browser's ``localStorage`` behaves for the web client.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from foundersnet.models.settings import SETTINGS_KEY, NotificationSettings

logger = logging.getLogger(__name__)


class LocalStorage:
    """JSON-file backed key/value store."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self.path)
            return {}
        return data

    def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None."""
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self.path.write_text(json.dumps(data, indent=2))


def load_settings(storage: LocalStorage) -> NotificationSettings:
    """Read notification preferences; defaults when absent or invalid."""
    raw = storage.get(SETTINGS_KEY)
    if raw is None:
        return NotificationSettings()
    try:
        return NotificationSettings.model_validate(raw)
    except ValidationError as e:
        logger.warning("Stored notification settings are invalid, using defaults: %s", e)
        return NotificationSettings()


def save_settings(storage: LocalStorage, settings: NotificationSettings) -> None:
    """Persist notification preferences."""
    storage.set(SETTINGS_KEY, settings.model_dump(by_alias=True))
