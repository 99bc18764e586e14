#!/usr/bin/env python3
"""
Preferences Service

Small key-value defaults store persisted as a JSON document. Holds the
last selected model per size class and the activation flags that unlock
secret models.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from watchshot.config.compose_config import PathConfig


class PreferencesError(Exception):
    """Raised when the preferences file cannot be written"""
    pass


class Preferences:
    """Key-value defaults, written through to disk when a path is set"""

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize preferences

        Args:
            path: JSON file backing the store. In-memory only when None.
        """
        self.logger = logging.getLogger(__name__)
        self.path = path
        self._values: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}

        try:
            with open(self.path, 'r') as f:
                values = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self.logger.warning(f"Ignoring unreadable preferences {self.path}: {e}")
            return {}

        if not isinstance(values, dict):
            self.logger.warning(f"Ignoring preferences {self.path}: not an object")
            return {}
        return values

    def _save(self) -> None:
        if self.path is None:
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(self._values, f, indent=2, sort_keys=True)
        except IOError as e:
            raise PreferencesError(f"Failed to write preferences {self.path}: {e}")

    def get_string(self, key: str) -> Optional[str]:
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    def set_string(self, key: str, value: str) -> None:
        self._values[key] = value
        self._save()

    def get_bool(self, key: str) -> bool:
        """Boolean flag; absent or non-boolean values read as False"""
        return self._values.get(key) is True

    def set_bool(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)
        self._save()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()


def selected_model_key(size_class) -> str:
    """Preference key holding the last selected model of a size class"""
    return f"{PathConfig.LAST_SELECTED_MODEL_KEY}{size_class.filename_prefix}"


def load_selected_model(size_class, preferences: Preferences):
    """
    Load the last selected model of a size class

    Falls back to the first visible model when nothing was stored or the
    stored model is no longer visible.

    Returns:
        Model, or None if the size class has no visible models
    """
    filename_suffix = preferences.get_string(selected_model_key(size_class))
    if filename_suffix is not None:
        model = size_class.model_for_filename_key(filename_suffix)
        if model is not None:
            return model

    models = size_class.models
    return models[0] if models else None


def save_selected_model(size_class, model, preferences: Preferences) -> None:
    """Record the model last selected for a size class"""
    preferences.set_string(selected_model_key(size_class), model.filename_suffix)
