"""CPU usage, frequency, temperature and model information."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from resmon.util import ResourceError

PROC_STAT_PATH = "/proc/stat"
CPU_SYSFS_ROOT = "/sys/devices/system/cpu"
HWMON_ROOT = "/sys/class/hwmon"
THERMAL_ROOT = "/sys/class/thermal"

_PROC_STAT_REGEX = re.compile(
    r"cpu[0-9]* *(?P<user>[0-9]*) *(?P<nice>[0-9]*) *(?P<system>[0-9]*)"
    r" *(?P<idle>[0-9]*) *(?P<iowait>[0-9]*) *(?P<irq>[0-9]*) *(?P<softirq>[0-9]*)"
    r" *(?P<steal>[0-9]*) *(?P<guest>[0-9]*) *(?P<guest_nice>[0-9]*)"
)
_UNSIGNED = re.compile(r"\+?[0-9]+")

# Sensors in order of preference; the first four stop a rescan once found.
_SENSOR_PRIORITY = ("zenpower", "k10temp", "coretemp", "x86_pkg_temp", "acpitz")
_RESCAN_UNLESS = ("zenpower", "coretemp", "acpitz", "x86_pkg_temp")
_HWMON_SENSORS = {"zenpower\n": "zenpower", "coretemp\n": "coretemp", "k10temp\n": "k10temp"}
_THERMAL_SENSORS = {"x86_pkg_temp\n": "x86_pkg_temp", "acpitz\n": "acpitz"}
_sensor_cache: dict[tuple[str, str], dict[str, Path]] = {}


def _parse_unsigned(text):
    if not _UNSIGNED.fullmatch(text):
        return None
    return int(text)


def _parse_float(text):
    if text != text.strip() or "_" in text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _read_text(path, error):
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise ResourceError(error) from err


@dataclass
class CpuInfo:
    """Static information about the processor as reported by lscpu."""

    vendor_id: str | None = None
    model_name: str | None = None
    architecture: str | None = None
    logical_cpus: int | None = None
    physical_cpus: int | None = None
    sockets: int | None = None
    virtualization: str | None = None
    max_speed: float | None = None


def parse_lscpu(text):
    """Build a CpuInfo from the ``Key: value`` output of lscpu."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            values[key.strip()] = value.strip()

    sockets = _parse_unsigned(values.get("Socket(s)", ""))
    cores_per_socket = _parse_unsigned(values.get("Core(s) per socket", ""))
    physical_cpus = None
    if cores_per_socket is not None:
        physical_cpus = cores_per_socket * (sockets if sockets is not None else 1)
    max_mhz = _parse_float(values.get("CPU max MHz", ""))

    return CpuInfo(
        vendor_id=values.get("Vendor ID"),
        model_name=values.get("Model name"),
        architecture=values.get("Architecture"),
        logical_cpus=_parse_unsigned(values.get("CPU(s)", "")),
        physical_cpus=physical_cpus,
        sockets=sockets,
        virtualization=values.get("Virtualization"),
        max_speed=max_mhz * 1_000_000.0 if max_mhz is not None else None,
    )


def cpu_info():
    """Run lscpu and return the parsed CpuInfo."""
    env = dict(os.environ, LC_ALL="C")
    try:
        completed = subprocess.run(["lscpu"], capture_output=True, env=env, check=False)
    except OSError as err:
        raise ResourceError("unable to run lscpu, is util-linux installed?") from err
    try:
        text = completed.stdout.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ResourceError("unable to parse lscpu output to UTF-8") from err
    return parse_lscpu(text)


def get_cpu_freq(core, sysfs_root=CPU_SYSFS_ROOT):
    """Return the current frequency of logical CPU ``core`` in Hz."""
    path = Path(sysfs_root) / f"cpu{core}" / "cpufreq" / "scaling_cur_freq"
    text = _read_text(path, f"unable to read scaling_cur_freq for core {core}")
    khz = _parse_unsigned(text.replace("\n", ""))
    if khz is None:
        raise ResourceError("can't parse scaling_cur_freq to usize")
    return khz * 1000


def parse_proc_stat_line(line):
    """Return ``(idle_time, total_time)`` from a cpu line of /proc/stat."""
    if isinstance(line, (bytes, bytearray)):
        line = bytes(line).decode("utf-8", errors="replace")
    match = _PROC_STAT_REGEX.search(line)
    if match is None:
        raise ResourceError("using regex to parse /proc/stat failed")
    idle = _parse_unsigned(match.group("idle"))
    if idle is None:
        raise ResourceError("unable to get idle time")
    iowait = _parse_unsigned(match.group("iowait"))
    if iowait is None:
        raise ResourceError("unable to get iowait time")
    parsed = (_parse_unsigned(value) for value in match.groups())
    total = sum(value for value in parsed if value is not None)
    return idle + iowait, total


def get_proc_stat(core=None, proc_stat_path=PROC_STAT_PATH):
    """Return the /proc/stat line of all CPUs (``None``) or of one logical CPU."""
    # line 0 holds the combined stats, the logical CPUs follow
    selected = 0 if core is None else core + 1
    text = _read_text(proc_stat_path, f"unable to read {proc_stat_path}")
    cpu_lines = [line for line in text.split("\n") if line.startswith("cpu")]
    if selected >= len(cpu_lines):
        raise ResourceError("`core` argument greater than amount of cores")
    return cpu_lines[selected]


def get_cpu_usage(core=None, proc_stat_path=PROC_STAT_PATH):
    """Return ``(idle_time, total_time)`` since boot for all CPUs or one CPU."""
    return parse_proc_stat_line(get_proc_stat(core, proc_stat_path))


def _scan_sensors(sensors, hwmon_root, thermal_root):
    for path in sorted(Path(hwmon_root).glob("hwmon*")):
        try:
            kind = _HWMON_SENSORS.get((path / "name").read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            continue
        if kind is not None:
            sensors.setdefault(kind, path / "temp1_input")
    for path in sorted(Path(thermal_root).glob("thermal_zone*")):
        try:
            kind = _THERMAL_SENSORS.get((path / "type").read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError):
            continue
        if kind is not None:
            sensors.setdefault(kind, path / "temp")


def _read_sysfs_thermal(path):
    text = _read_text(path, f"unable to read {path}")
    value = _parse_float(text.replace("\n", ""))
    if value is None:
        raise ResourceError(f"unable to parse {path}")
    return value / 1000.0


def get_temperature(hwmon_root=HWMON_ROOT, thermal_root=THERMAL_ROOT):
    """Return the CPU temperature in °C from the best sensor available."""
    sensors = _sensor_cache.setdefault((str(hwmon_root), str(thermal_root)), {})
    if not any(kind in sensors for kind in _RESCAN_UNLESS):
        _scan_sensors(sensors, hwmon_root, thermal_root)
    for kind in _SENSOR_PRIORITY:
        if kind in sensors:
            return _read_sysfs_thermal(sensors[kind])
    raise ResourceError("no CPU temperature sensor found")


@dataclass
class CpuData:
    """One snapshot of CPU usage counters, temperature and frequencies."""

    new_total_usage: tuple[int, int] = (0, 0)
    new_thread_usages: list[tuple[int, int]] = field(default_factory=list)
    temperature: float | None = None
    frequencies: list[int] = field(default_factory=list)

    @classmethod
    def gather(cls, logical_cpus):
        """Read the current values for ``logical_cpus`` logical CPUs."""

        def usage(core):
            try:
                return get_cpu_usage(core)
            except ResourceError:
                return (0, 0)

        def frequency(core):
            try:
                return get_cpu_freq(core)
            except ResourceError:
                return 0

        try:
            temperature = get_temperature()
        except ResourceError:
            temperature = None

        return cls(
            new_total_usage=usage(None),
            new_thread_usages=[usage(core) for core in range(logical_cpus)],
            temperature=temperature,
            frequencies=[frequency(core) for core in range(logical_cpus)],
        )