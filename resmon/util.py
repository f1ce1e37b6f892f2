"""Shared helpers: error type, PCI ID lookup, sandbox detection and NaN handling."""

from __future__ import annotations

import configparser
import math
import re
from pathlib import Path

FLATPAK_INFO_PATH = "/.flatpak-info"
FLATPAK_SPAWN = "/usr/bin/flatpak-spawn"

_VENDOR_LINE = re.compile(r"^([0-9a-fA-F]{4})\s+(.+?)\s*$")
_DEVICE_LINE = re.compile(r"^\t([0-9a-fA-F]{4})\s+(.+?)\s*$")


class ResourceError(Exception):
    """Raised when system information cannot be read or parsed."""


class PciDatabase:
    """Vendor and device names looked up by PCI vendor and device ID."""

    def __init__(self, vendors=None, devices=None):
        self.vendors: dict[int, str] = dict(vendors or {})
        self.devices: dict[tuple[int, int], str] = dict(devices or {})

    @classmethod
    def parse(cls, text):
        """Build a database from text in the ``pci.ids`` format."""
        vendors: dict[int, str] = {}
        devices: dict[tuple[int, int], str] = {}
        current_vendor = None
        for line in text.splitlines():
            if not line.strip() or line.lstrip().startswith("#"):
                continue
            if line.startswith("C "):
                # device class section follows the vendor list
                break
            if line.startswith("\t\t"):
                continue
            if match := _DEVICE_LINE.match(line):
                if current_vendor is not None:
                    devices[(current_vendor, int(match.group(1), 16))] = match.group(2)
                continue
            if match := _VENDOR_LINE.match(line):
                current_vendor = int(match.group(1), 16)
                vendors[current_vendor] = match.group(2)
        return cls(vendors, devices)

    @classmethod
    def load(cls, path):
        """Read a ``pci.ids`` file; raise ResourceError if it cannot be read."""
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as err:
            raise ResourceError(f"unable to read PCI ID database {path}") from err
        return cls.parse(text)

    def vendor_name(self, vid):
        """Return the vendor's name, or None if it is unknown."""
        return self.vendors.get(vid)

    def device_name(self, vid, pid):
        """Return the device's name, or None if it is unknown."""
        return self.devices.get((vid, pid))


def is_flatpak(info_path=FLATPAK_INFO_PATH):
    """Return whether the program runs inside a Flatpak sandbox."""
    return Path(info_path).exists()


def flatpak_app_path(info_path=FLATPAK_INFO_PATH):
    """Return the ``app-path`` entry of the Flatpak info file."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        with open(info_path, encoding="utf-8") as handle:
            parser.read_file(handle)
    except (OSError, configparser.Error) as err:
        raise ResourceError(f"unable to find {info_path}") from err
    if not parser.has_section("Instance"):
        raise ResourceError(f"unable to find Instance section in {info_path}")
    try:
        return parser.get("Instance", "app-path")
    except configparser.NoOptionError as err:
        raise ResourceError(f"unable to find app-path in {info_path}") from err


def nan_default(value, default):
    """Return ``default`` if ``value`` is NaN, otherwise ``value``."""
    return default if math.isnan(value) else value