"""Block devices found in sysfs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from resmon.settings import Base
from resmon.units import convert_storage
from resmon.util import ResourceError

BLOCK_ROOT = "/sys/block"
SECTOR_SIZE = 512

STAT_FIELDS = (
    "read_ios",
    "read_merges",
    "read_sectors",
    "read_ticks",
    "write_ios",
    "write_merges",
    "write_sectors",
    "write_ticks",
    "in_flight",
    "io_ticks",
    "time_in_queue",
    "discard_ios",
    "discard_merges",
    "discard_sectors",
    "discard_ticks",
    "flush_ios",
    "flush_ticks",
)

_SYS_STATS = re.compile("".join(rf" *(?P<{name}>[0-9]*)" for name in STAT_FIELDS))
_UNSIGNED = re.compile(r"\+?[0-9]+")
_U8_MAX = 255


class DriveType(Enum):
    """Kinds of block devices."""

    CD_DVD_BLURAY = "CdDvdBluray"
    EMMC = "Emmc"
    FLASH = "Flash"
    FLOPPY = "Floppy"
    HDD = "Hdd"
    LOOP_DEVICE = "LoopDevice"
    MAPPED_DEVICE = "MappedDevice"
    NVME = "Nvme"
    RAID = "Raid"
    RAM_DISK = "RamDisk"
    SSD = "Ssd"
    ZFS_VOLUME = "ZfsVolume"
    ZRAM = "Zram"
    UNKNOWN = "Unknown"


# Checked in this order against the start of the block device's name.
_PREFIX_TYPES = (
    ("nvme", DriveType.NVME),
    ("mmc", DriveType.EMMC),
    ("fd", DriveType.FLOPPY),
    ("sr", DriveType.CD_DVD_BLURAY),
    ("zram", DriveType.ZRAM),
    ("md", DriveType.RAID),
    ("loop", DriveType.LOOP_DEVICE),
    ("dm", DriveType.MAPPED_DEVICE),
    ("ram", DriveType.RAM_DISK),
    ("zd", DriveType.ZFS_VOLUME),
)

_VIRTUAL_TYPES = frozenset(
    {
        DriveType.LOOP_DEVICE,
        DriveType.MAPPED_DEVICE,
        DriveType.RAID,
        DriveType.RAM_DISK,
        DriveType.ZFS_VOLUME,
        DriveType.ZRAM,
    }
)

_ICONS = {
    DriveType.CD_DVD_BLURAY: "cd-dvd-bluray-symbolic",
    DriveType.EMMC: "emmc-symbolic",
    DriveType.FLASH: "flash-symbolic",
    DriveType.FLOPPY: "floppy-symbolic",
    DriveType.HDD: "hdd-symbolic",
    DriveType.LOOP_DEVICE: "loop-device-symbolic",
    DriveType.MAPPED_DEVICE: "mapped-device-symbolic",
    DriveType.NVME: "nvme-symbolic",
    DriveType.RAID: "raid-symbolic",
    DriveType.RAM_DISK: "ram-disk-symbolic",
    DriveType.SSD: "ssd-symbolic",
    DriveType.ZFS_VOLUME: "zfs-symbolic",
    DriveType.ZRAM: "zram-symbolic",
}

DEFAULT_ICON = "unknown-drive-type-symbolic"

_SIZED_NAMES = {
    DriveType.LOOP_DEVICE: "{} Loop Device",
    DriveType.MAPPED_DEVICE: "{} Mapped Device",
    DriveType.RAID: "{} RAID",
    DriveType.RAM_DISK: "{} RAM Disk",
    DriveType.ZRAM: "{} zram Device",
    DriveType.ZFS_VOLUME: "{} ZFS Volume",
}


def _parse_uint(text, limit=None):
    if not _UNSIGNED.fullmatch(text):
        raise ValueError(f"invalid unsigned integer {text!r}")
    value = int(text)
    if limit is not None and value > limit:
        raise ValueError(f"{value} is out of range")
    return value


def _read(path, error):
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ResourceError(error) from err


def parse_disk_stats(text):
    """Parse the contents of a sysfs ``stat`` file into named counters."""
    match = _SYS_STATS.match(text)
    stats = {}
    for name in STAT_FIELDS:
        raw = match.group(name)
        if raw:
            stats[name] = int(raw)
    return stats


@dataclass(eq=False)
class Drive:
    """A block device; two drives are equal if their block device names are."""

    model_name: str | None = None
    drive_type: DriveType = DriveType.UNKNOWN
    block_device: str = ""
    sysfs_path: Path = field(default_factory=Path)

    def __eq__(self, other):
        if not isinstance(other, Drive):
            return NotImplemented
        return self.block_device == other.block_device

    def __hash__(self):
        return hash(self.block_device)

    @classmethod
    def from_sysfs(cls, sysfs_path):
        """Create a drive from its directory in sysfs."""
        path = Path(sysfs_path)
        if path.name in ("", ".."):
            raise ValueError(f"sysfs path {path} has no file name")
        drive = cls(block_device=path.name, sysfs_path=path)
        try:
            drive.model_name = drive.model().strip()
        except ResourceError:
            drive.model_name = None
        try:
            drive.drive_type = drive._detect_type()
        except ResourceError:
            drive.drive_type = DriveType.UNKNOWN
        return drive

    @staticmethod
    def get_sysfs_paths(block_root=BLOCK_ROOT):
        """Return the sysfs paths of possible drives."""
        try:
            entries = sorted(Path(block_root).iterdir())
        except OSError as err:
            raise ResourceError(f"unable to list {block_root}") from err
        return [entry for entry in entries if entry.name]

    def display_name(self, capacity, base=Base.DECIMAL):
        """Return a readable name built from the drive type and its capacity."""
        if self.drive_type is DriveType.CD_DVD_BLURAY:
            return "CD/DVD/Blu-ray Drive"
        if self.drive_type is DriveType.FLOPPY:
            return "Floppy Drive"
        formatted = convert_storage(float(capacity), True, base)
        return _SIZED_NAMES.get(self.drive_type, "{} Drive").format(formatted)

    def sys_stats(self):
        """Return the current I/O counters of the drive."""
        text = _read(
            self.sysfs_path / "stat",
            f"unable to read /sys/block/{self.block_device}/stat",
        )
        return parse_disk_stats(text)

    def _detect_type(self):
        for prefix, kind in _PREFIX_TYPES:
            if self.block_device.startswith(prefix):
                return kind
        try:
            text = (self.sysfs_path / "queue" / "rotational").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return DriveType.UNKNOWN
        try:
            rotational = _parse_uint(text.replace("\n", ""), _U8_MAX) != 0
        except ValueError as err:
            raise ResourceError("unable to parse rotational sysfs file") from err
        if rotational:
            return DriveType.HDD
        if self.removable():
            return DriveType.FLASH
        return DriveType.SSD

    def _read_flag(self, name):
        text = _read(self.sysfs_path / name, f"unable to read {name} sysfs file")
        try:
            return _parse_uint(text.replace("\n", ""), _U8_MAX)
        except ValueError as err:
            raise ResourceError(f"unable to parse {name} sysfs file") from err

    def removable(self):
        """Return whether the drive is removable."""
        return self._read_flag("removable") != 0

    def writable(self):
        """Return whether the drive is writable."""
        return self._read_flag("ro") == 0

    def capacity(self):
        """Return the capacity of the drive in bytes."""
        text = _read(self.sysfs_path / "size", "unable to read size sysfs file")
        try:
            sectors = _parse_uint(text.replace("\n", ""))
        except ValueError as err:
            raise ResourceError("unable to parse size sysfs file") from err
        return sectors * SECTOR_SIZE

    def model(self):
        """Return the model information of the drive."""
        return _read(self.sysfs_path / "device" / "model", "unable to parse model sysfs file")

    def wwid(self):
        """Return the World-Wide Identification of the drive."""
        return _read(self.sysfs_path / "device" / "wwid", "unable to parse wwid sysfs file")

    def icon_name(self):
        """Return the icon name for the type of drive."""
        return _ICONS.get(self.drive_type, DEFAULT_ICON)

    def is_virtual(self):
        """Return whether the drive is virtual or has no capacity."""
        if self.drive_type in _VIRTUAL_TYPES:
            return True
        try:
            return self.capacity() == 0
        except ResourceError:
            return True


@dataclass
class DriveData:
    """One snapshot of a drive's state."""

    inner: Drive
    is_virtual: bool
    writable: bool
    removable: bool
    disk_stats: dict[str, int]
    capacity: int

    @classmethod
    def from_path(cls, path):
        """Gather the state of the drive at ``path``; unreadable values fall back."""
        try:
            inner = Drive.from_sysfs(path)
        except ResourceError:
            inner = Drive()

        def fallback(read, default):
            try:
                return read()
            except ResourceError:
                return default

        return cls(
            inner=inner,
            is_virtual=inner.is_virtual(),
            writable=fallback(inner.writable, False),
            removable=fallback(inner.removable, False),
            disk_stats=fallback(inner.sys_stats, {}),
            capacity=fallback(inner.capacity, 0),
        )