"""
Preferences Service

Owns the current identity's UserPreferences.

- get_preferences() is a synchronous snapshot read used by the ProductManager
- load_preferences() runs on every identity change
- save_preferences() persists (optionally to PREFERENCES_DIR) and publishes

Stored preferences are merged over the defaults, so fields added later
always have a value.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from foodscan.core.constants import ANONYMOUS_PARTITION, TOPIC_PREFERENCES
from foodscan.schemas.preferences import UserPreferences
from foodscan.services.events import EventBus

logger = logging.getLogger(__name__)


class PreferencesService:

    def __init__(self, storage_dir: Optional[str] = None, events: Optional[EventBus] = None):
        self.storage_dir = Path(storage_dir) if storage_dir else None
        self.events = events or EventBus()
        self.partition = ANONYMOUS_PARTITION
        self._memory: dict[str, dict] = {}
        self._current = UserPreferences()

    def _storage_path(self) -> Optional[Path]:
        if not self.storage_dir:
            return None
        safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", self.partition)
        return self.storage_dir / f"preferences_{safe_name}.json"

    def _read_stored(self) -> Optional[dict]:
        path = self._storage_path()
        if path is None:
            return self._memory.get(self.partition)
        if not path.exists():
            return None
        try:
            stored = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"[Preferences] Could not read {path}: {e}")
            return None
        if not isinstance(stored, dict):
            logger.warning(f"[Preferences] {path} is not an object, ignoring it")
            return None
        return stored

    def set_identity(self, user_id: Optional[str]) -> UserPreferences:
        self.partition = user_id or ANONYMOUS_PARTITION
        return self.load_preferences()

    def load_preferences(self) -> UserPreferences:
        """Load the current identity's preferences, merged over the defaults."""
        stored = self._read_stored()
        merged = UserPreferences().model_dump(mode="json")
        if stored:
            merged.update(stored)

        try:
            self._current = UserPreferences.model_validate(merged)
        except ValidationError as e:
            logger.warning(f"[Preferences] Stored preferences for {self.partition} are invalid, using defaults: {e}")
            self._current = UserPreferences()

        self.events.publish(TOPIC_PREFERENCES, self._current)
        return self._current

    def get_preferences(self) -> UserPreferences:
        return self._current

    def save_preferences(self, prefs: UserPreferences) -> UserPreferences:
        data = prefs.model_dump(mode="json")
        path = self._storage_path()
        if path is None:
            self._memory[self.partition] = data
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")

        self._current = prefs
        logger.info(f"[Preferences] Saved preferences for {self.partition}")
        self.events.publish(TOPIC_PREFERENCES, prefs)
        return prefs
