"""System memory usage from /proc/meminfo and memory modules from dmidecode."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from resmon.util import FLATPAK_SPAWN, ResourceError, flatpak_app_path, is_flatpak

MEMINFO_PATH = "/proc/meminfo"
NOT_AVAILABLE = "N/A"

_UNSIGNED = re.compile(r"\+?[0-9]+")
_RE_SPEED = re.compile(r"Speed: (\d+) MT/s")
_RE_FORMFACTOR = re.compile(r"Form Factor: (.+)")
_RE_TYPE = re.compile(r"Type: (.+)")
_RE_TYPE_DETAIL = re.compile(r"Type Detail: (.+)")

_DMIDECODE_ARGS = ("-t", "17", "-q")


def parse_meminfo(text):
    """Split ``Key: value`` lines of /proc/meminfo into a dictionary of strings."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            values[key.strip()] = value.strip()
    return values


def _kilobytes(values, key):
    raw = values.get(key)
    if raw is None:
        return None
    first = raw.split(" ")[0]
    if not _UNSIGNED.fullmatch(first):
        return None
    return int(first) * 1000


def _read_meminfo(path):
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ResourceError(f"unable to read {path}") from err
    return parse_meminfo(text)


def _lookup(path, key):
    try:
        values = _read_meminfo(path)
    except ResourceError:
        return None
    return _kilobytes(values, key)


@dataclass
class MemoryData:
    """One snapshot of memory and swap usage, in bytes."""

    total_mem: int
    available_mem: int
    free_mem: int
    total_swap: int
    free_swap: int

    @classmethod
    def from_meminfo(cls, text):
        """Build a snapshot from the contents of /proc/meminfo."""
        values = parse_meminfo(text)

        def required(key):
            amount = _kilobytes(values, key)
            if amount is None:
                raise ResourceError(f"unable to parse {key} from meminfo")
            return amount

        return cls(
            total_mem=required("MemTotal"),
            available_mem=required("MemAvailable"),
            free_mem=required("MemFree"),
            total_swap=required("SwapTotal"),
            free_swap=required("SwapFree"),
        )

    @classmethod
    def read(cls, path=MEMINFO_PATH):
        """Read a snapshot from the meminfo file at ``path``."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as err:
            raise ResourceError(f"unable to read {path}") from err
        return cls.from_meminfo(text)


def get_total_memory(path=MEMINFO_PATH):
    """Return the total memory in bytes, or None if it cannot be read."""
    return _lookup(path, "MemTotal")


def get_available_memory(path=MEMINFO_PATH):
    """Return the available memory in bytes, or None if it cannot be read."""
    return _lookup(path, "MemAvailable")


def get_free_memory(path=MEMINFO_PATH):
    """Return the free memory in bytes, or None if it cannot be read."""
    return _lookup(path, "MemFree")


def get_total_swap(path=MEMINFO_PATH):
    """Return the total swap in bytes, or None if it cannot be read."""
    return _lookup(path, "SwapTotal")


def get_free_swap(path=MEMINFO_PATH):
    """Return the free swap in bytes, or None if it cannot be read."""
    return _lookup(path, "SwapFree")


@dataclass
class MemoryDevice:
    """A memory slot as reported by dmidecode."""

    speed: int | None = None
    form_factor: str = NOT_AVAILABLE
    memory_type: str = NOT_AVAILABLE
    type_detail: str = NOT_AVAILABLE
    installed: bool = False


def _first_group(regex, text):
    match = regex.search(text)
    return match.group(1) if match else NOT_AVAILABLE


def parse_dmidecode(dmi):
    """Parse the output of ``dmidecode -t 17 -q`` into memory devices."""
    devices = []
    for block in dmi.split("\n\n"):
        if not block:
            continue
        speed_match = _RE_SPEED.search(block)
        devices.append(
            MemoryDevice(
                speed=int(speed_match.group(1)) if speed_match else None,
                form_factor=_first_group(_RE_FORMFACTOR, block),
                memory_type=_first_group(_RE_TYPE, block),
                type_detail=_first_group(_RE_TYPE_DETAIL, block),
                installed=speed_match is not None,
            )
        )
    return devices


def _run(args):
    try:
        return subprocess.run(args, capture_output=True, check=False)
    except OSError as err:
        raise ResourceError(f"unable to run {args[0]}") from err


def _decode(output):
    try:
        return output.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ResourceError("dmidecode output is not valid UTF-8") from err


def get_memory_devices():
    """Run dmidecode directly; raise ResourceError without permission."""
    completed = _run(["dmidecode", *_DMIDECODE_ARGS])
    if completed.returncode < 0 or completed.returncode == 1:
        raise ResourceError("no permission")
    return parse_dmidecode(_decode(completed.stdout))


def pkexec_get_memory_devices():
    """Run dmidecode with elevated privileges through pkexec."""
    if is_flatpak():
        try:
            app_path = flatpak_app_path()
        except ResourceError:
            app_path = ""
        args = [
            FLATPAK_SPAWN,
            "--host",
            "/usr/bin/pkexec",
            "--disable-internal-agent",
            f"{app_path}/bin/dmidecode",
            *_DMIDECODE_ARGS,
        ]
    else:
        args = ["pkexec", "--disable-internal-agent", "dmidecode", *_DMIDECODE_ARGS]
    completed = _run(args)
    return parse_dmidecode(_decode(completed.stdout))