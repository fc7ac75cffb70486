import json
import logging
from pathlib import Path
from typing import Any, Optional

import watchrun.settings as default_settings

log = logging.getLogger(__name__)


class MergedSettings:
    """
    A singleton class that merges default settings with JSON/env overrides.

    It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Environment overrides (handled by `python-dotenv` in settings.py).
    3. Overrides from the JSON overrides file for keys in `MODIFIABLE_SETTINGS`.
    """

    def __init__(self, overrides_path: Optional[Path] = None) -> None:
        """
        Initializes the settings object by loading defaults and overrides.

        :param overrides_path: Alternate overrides file, mainly for tests.
        """
        self.loaded_overrides: Optional[Path] = None
        self._load_defaults()
        if overrides_path is not None:
            self.OVERRIDES_JSON_PATH = Path(overrides_path)
        self._load_overrides()

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings module as defaults."""
        for key in dir(default_settings):
            if key.isupper():
                setattr(self, key, getattr(default_settings, key))

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the overrides file.

        Only keys listed in `MODIFIABLE_SETTINGS` are applied, and each value
        is coerced to the type of the default it replaces.
        """
        if not self.OVERRIDES_JSON_PATH.exists():
            return

        try:
            with self.OVERRIDES_JSON_PATH.open('r') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load or parse overrides file '{self.OVERRIDES_JSON_PATH}': {e}")
            return

        if not isinstance(overrides, dict):
            log.error(f"Overrides file '{self.OVERRIDES_JSON_PATH}' must contain a JSON object. Ignoring.")
            return

        self.loaded_overrides = self.OVERRIDES_JSON_PATH
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue
            try:
                setattr(self, key, self._coerce(getattr(self, key), value))
                log.debug(f"Overridden setting: {key} = {value}")
            except (ValueError, TypeError) as e:
                log.error(f"Could not convert value '{value}' for key '{key}'. Error: {e}")

        self._validate_backoff()

    def _validate_backoff(self) -> None:
        """Restores the default backoff policy if the overridden one cannot be used."""
        problems = []
        if self.BACKOFF_MIN <= 0:
            problems.append(f"BACKOFF_MIN ({self.BACKOFF_MIN}) must be positive")
        if self.BACKOFF_MIN > self.BACKOFF_MAX:
            problems.append(f"BACKOFF_MIN ({self.BACKOFF_MIN}) exceeds BACKOFF_MAX ({self.BACKOFF_MAX})")
        if self.BACKOFF_MULTIPLIER < 1:
            problems.append(f"BACKOFF_MULTIPLIER ({self.BACKOFF_MULTIPLIER}) must be at least 1")
        if not problems:
            return

        log.warning(f"Invalid backoff overrides: {'; '.join(problems)}. Falling back to defaults.")
        self.BACKOFF_MIN = default_settings.BACKOFF_MIN
        self.BACKOFF_MAX = default_settings.BACKOFF_MAX
        self.BACKOFF_MULTIPLIER = default_settings.BACKOFF_MULTIPLIER

    @staticmethod
    def _coerce(original_value: Any, value: Any) -> Any:
        """Converts an override to the type of the default it replaces."""
        if isinstance(original_value, bool):
            return str(value).lower() in ('true', '1', 't', 'yes', 'y')
        if isinstance(original_value, str):
            return str(value).upper()
        if original_value is not None:
            return type(original_value)(value)
        return value


# Create a singleton instance to be imported by other modules
effective_settings = MergedSettings()
