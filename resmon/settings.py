"""Persistent user settings with change notification."""

from __future__ import annotations

import itertools
import json
from enum import Enum
from pathlib import Path

from resmon.util import ResourceError


class Base(Enum):
    """Base used for unit prefixes."""

    DECIMAL = "Decimal"
    BINARY = "Binary"


class TemperatureUnit(Enum):
    """Unit temperatures are shown in."""

    CELSIUS = "Celsius"
    KELVIN = "Kelvin"
    FAHRENHEIT = "Fahrenheit"


class RefreshSpeed(Enum):
    """How often the displayed data is refreshed."""

    VERY_SLOW = "VerySlow"
    SLOW = "Slow"
    NORMAL = "Normal"
    FAST = "Fast"
    VERY_FAST = "VeryFast"

    def ui_refresh_interval(self):
        """Seconds between two refreshes of the display."""
        return _UI_INTERVALS[self]

    def process_refresh_interval(self):
        """Seconds between two refreshes of the process list."""
        return self.ui_refresh_interval() * 2.0


_UI_INTERVALS = {
    RefreshSpeed.VERY_SLOW: 3.0,
    RefreshSpeed.SLOW: 2.0,
    RefreshSpeed.NORMAL: 1.0,
    RefreshSpeed.FAST: 0.5,
    RefreshSpeed.VERY_FAST: 0.25,
}

_ENUM_KEYS = {
    "temperature-unit": (TemperatureUnit, TemperatureUnit.CELSIUS),
    "base": (Base, Base.DECIMAL),
    "refresh-speed": (RefreshSpeed, RefreshSpeed.NORMAL),
}

_DEFAULTS = {
    "temperature-unit": TemperatureUnit.CELSIUS.value,
    "base": Base.DECIMAL.value,
    "refresh-speed": RefreshSpeed.NORMAL.value,
    "is-maximized": False,
    "window-width": 900,
    "window-height": 600,
    "show-search-on-start": False,
    "show-virtual-drives": False,
    "show-virtual-network-interfaces": False,
    "sidebar-details": True,
    "network-bits": False,
    "apps-show-memory": True,
    "apps-show-cpu": True,
    "apps-show-drive-read-speed": False,
    "apps-show-drive-read-total": False,
    "apps-show-drive-write-speed": False,
    "apps-show-drive-write-total": False,
    "processes-show-id": True,
    "processes-show-user": True,
    "processes-show-memory": True,
    "processes-show-cpu": True,
    "processes-show-drive-read-speed": False,
    "processes-show-drive-read-total": False,
    "processes-show-drive-write-speed": False,
    "processes-show-drive-write-total": False,
    "show-logical-cpus": False,
}


def _parse_enum(key, raw):
    enum_cls, default = _ENUM_KEYS[key]
    try:
        return enum_cls(raw)
    except ValueError:
        return default


def _accepts(default, value):
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, str)


class Settings:
    """Key/value settings stored as JSON, with callbacks on change."""

    def __init__(self, path=None):
        self._path = Path(path) if path is not None else None
        self._values = dict(_DEFAULTS)
        self._handlers: dict[int, tuple[str, object]] = {}
        self._ids = itertools.count(1)
        if self._path is not None and self._path.exists():
            self._load()

    def _load(self):
        try:
            stored = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as err:
            raise ResourceError(f"unable to read settings from {self._path}") from err
        if not isinstance(stored, dict):
            raise ResourceError(f"malformed settings file {self._path}")
        for key, value in stored.items():
            if key in _DEFAULTS and _accepts(_DEFAULTS[key], value):
                self._values[key] = value

    def _typed(self, key):
        raw = self._values[key]
        return _parse_enum(key, raw) if key in _ENUM_KEYS else raw

    def get(self, key):
        """Return the stored value of ``key``."""
        if key not in self._values:
            raise KeyError(key)
        return self._values[key]

    def set(self, key, value):
        """Store ``value`` under ``key`` and notify connected callbacks."""
        if key not in _DEFAULTS:
            raise KeyError(key)
        if isinstance(value, Enum):
            if key not in _ENUM_KEYS or not isinstance(value, _ENUM_KEYS[key][0]):
                raise TypeError(f"{value!r} is not valid for {key}")
            value = value.value
        if not _accepts(_DEFAULTS[key], value):
            raise TypeError(f"{value!r} is not valid for {key}")
        if self._values[key] == value:
            return
        self._values[key] = value
        typed = self._typed(key)
        for handler_key, callback in list(self._handlers.values()):
            if handler_key == key:
                callback(typed)

    def connect(self, key, callback):
        """Call ``callback`` with the new value whenever ``key`` changes."""
        if key not in _DEFAULTS:
            raise KeyError(key)
        handler_id = next(self._ids)
        self._handlers[handler_id] = (key, callback)
        return handler_id

    def save(self):
        """Write all settings to the settings file."""
        if self._path is None:
            raise ResourceError("settings have no file to be saved to")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._values, indent=2), encoding="utf-8")
        except OSError as err:
            raise ResourceError(f"unable to write settings to {self._path}") from err

    def temperature_unit(self):
        """Return the configured temperature unit."""
        return self._typed("temperature-unit")

    def base(self):
        """Return the configured unit prefix base."""
        return self._typed("base")

    def refresh_speed(self):
        """Return the configured refresh speed."""
        return self._typed("refresh-speed")