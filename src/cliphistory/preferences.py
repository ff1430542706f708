"""User preferences persisted to a key-value defaults store.

Values are clamped to their valid ranges both when loaded and when set, so
anything read back from ``Preferences`` is always in range. Listeners are
called synchronously, once per actual change.
"""

import logging
import math
from collections.abc import Callable
from enum import Enum

from cliphistory.config import (
    DEFAULT_AUTO_START_ON_LOGIN,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PREVENT_DUPLICATES,
    DEFAULT_SAVE_IMAGES,
    HISTORY_LIMIT_RANGE,
    POLL_INTERVAL_RANGE,
)

logger = logging.getLogger(__name__)


class Preference(str, Enum):
    """Preference names; each value is the defaults key it is stored under."""

    HISTORY_LIMIT = "pref.historyLimit"
    POLL_INTERVAL = "pref.pollInterval"
    PREVENT_DUPLICATES = "pref.preventDuplicates"
    SAVE_IMAGES = "pref.saveImages"
    AUTO_START_ON_LOGIN = "pref.autoStartOnLogin"


PreferenceListener = Callable[[Preference, object], None]


def clamp_history_limit(value: int) -> int:
    low, high = HISTORY_LIMIT_RANGE
    return min(max(int(value), low), high)


def clamp_poll_interval(value: float) -> float:
    low, high = POLL_INTERVAL_RANGE
    return min(max(float(value), low), high)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class Preferences:
    def __init__(self, defaults):
        self._defaults = defaults
        self._listeners: list[PreferenceListener] = []

        self._history_limit = self._load_number(
            Preference.HISTORY_LIMIT, DEFAULT_HISTORY_LIMIT, clamp_history_limit
        )
        self._poll_interval = self._load_number(
            Preference.POLL_INTERVAL, DEFAULT_POLL_INTERVAL, clamp_poll_interval
        )
        self._prevent_duplicates = self._load_bool(Preference.PREVENT_DUPLICATES, DEFAULT_PREVENT_DUPLICATES)
        self._save_images = self._load_bool(Preference.SAVE_IMAGES, DEFAULT_SAVE_IMAGES)
        self._auto_start_on_login = self._load_bool(Preference.AUTO_START_ON_LOGIN, DEFAULT_AUTO_START_ON_LOGIN)

    def _load_number(self, pref: Preference, default, clamp):
        stored = self._defaults.get(pref.value)
        if stored is None:
            return default
        if not _is_number(stored):
            logger.warning("Ignoring stored %s=%r, using default %r", pref.value, stored, default)
            self._defaults.set(pref.value, default)
            return default
        clamped = clamp(stored)
        if clamped != stored:
            logger.info("Clamped stored %s from %r to %r", pref.value, stored, clamped)
            self._defaults.set(pref.value, clamped)
        return clamped

    def _load_bool(self, pref: Preference, default: bool) -> bool:
        stored = self._defaults.get(pref.value)
        if stored is None:
            return default
        if isinstance(stored, bool):
            return stored
        # NSNumber-backed booleans can come back as 0/1
        if stored in (0, 1) and _is_number(stored):
            return bool(stored)
        logger.warning("Ignoring stored %s=%r, using default %r", pref.value, stored, default)
        self._defaults.set(pref.value, default)
        return default

    def subscribe(self, listener: PreferenceListener) -> None:
        self._listeners.append(listener)

    def _set_number(self, pref: Preference, attr: str, value, clamp) -> None:
        if not _is_number(value):
            logger.warning("Ignoring %s=%r, not a finite number", pref.value, value)
            return
        self._update(pref, attr, clamp(value))

    def _update(self, pref: Preference, attr: str, value) -> None:
        if getattr(self, attr) == value:
            return
        setattr(self, attr, value)
        self._defaults.set(pref.value, value)
        for listener in list(self._listeners):
            listener(pref, value)

    @property
    def history_limit(self) -> int:
        return self._history_limit

    @history_limit.setter
    def history_limit(self, value: int) -> None:
        self._set_number(Preference.HISTORY_LIMIT, "_history_limit", value, clamp_history_limit)

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @poll_interval.setter
    def poll_interval(self, value: float) -> None:
        self._set_number(Preference.POLL_INTERVAL, "_poll_interval", value, clamp_poll_interval)

    @property
    def prevent_duplicates(self) -> bool:
        return self._prevent_duplicates

    @prevent_duplicates.setter
    def prevent_duplicates(self, value: bool) -> None:
        self._update(Preference.PREVENT_DUPLICATES, "_prevent_duplicates", bool(value))

    @property
    def save_images(self) -> bool:
        return self._save_images

    @save_images.setter
    def save_images(self, value: bool) -> None:
        self._update(Preference.SAVE_IMAGES, "_save_images", bool(value))

    @property
    def auto_start_on_login(self) -> bool:
        return self._auto_start_on_login

    @auto_start_on_login.setter
    def auto_start_on_login(self, value: bool) -> None:
        self._update(Preference.AUTO_START_ON_LOGIN, "_auto_start_on_login", bool(value))

    def reset_to_defaults(self) -> None:
        self.history_limit = DEFAULT_HISTORY_LIMIT
        self.poll_interval = DEFAULT_POLL_INTERVAL
        self.prevent_duplicates = DEFAULT_PREVENT_DUPLICATES
        self.save_images = DEFAULT_SAVE_IMAGES
        self.auto_start_on_login = DEFAULT_AUTO_START_ON_LOGIN
