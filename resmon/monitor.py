"""Periodic gathering of system statistics and a console view of them."""

from __future__ import annotations

import argparse
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from resmon.cpu import CpuData
from resmon.drive import SECTOR_SIZE, Drive, DriveData
from resmon.memory import MemoryData
from resmon.network import NetworkData, NetworkInterface
from resmon.settings import Base
from resmon.units import convert_frequency, convert_speed, convert_storage
from resmon.util import PciDatabase, ResourceError

# time reserved before the next refresh to gather all data
GATHER_TIME = 0.2

PCI_IDS_PATHS = (
    "/usr/share/hwdata/pci.ids",
    "/usr/share/misc/pci.ids",
    "/usr/share/pci.ids",
)


@lru_cache(maxsize=1)
def _pci_database():
    for path in PCI_IDS_PATHS:
        try:
            return PciDatabase.load(path)
        except ResourceError:
            continue
    return None


def _gather_drives():
    paths = Drive.get_sysfs_paths()
    return paths, [DriveData.from_path(path) for path in paths]


def _gather_networks(pci_db):
    paths = NetworkInterface.get_sysfs_paths()
    return paths, [NetworkData.from_path(path, pci_db) for path in paths]


@dataclass
class RefreshData:
    """Everything gathered for one refresh of the view."""

    cpu_data: CpuData
    mem_data: MemoryData
    drive_paths: list[Path] = field(default_factory=list)
    drive_data: list[DriveData] = field(default_factory=list)
    network_paths: list[Path] = field(default_factory=list)
    network_data: list[NetworkData] = field(default_factory=list)

    @classmethod
    def gather(cls, logical_cpus):
        """Gather CPU, memory, drive and network data concurrently."""
        pci_db = _pci_database()
        with ThreadPoolExecutor() as pool:
            cpu = pool.submit(CpuData.gather, logical_cpus)
            mem = pool.submit(MemoryData.read)
            drives = pool.submit(_gather_drives)
            networks = pool.submit(_gather_networks, pci_db)
            drive_paths, drive_data = drives.result()
            network_paths, network_data = networks.result()
            return cls(
                cpu_data=cpu.result(),
                mem_data=mem.result(),
                drive_paths=drive_paths,
                drive_data=drive_data,
                network_paths=network_paths,
                network_data=network_data,
            )


def visible_paths(paths, data, show_virtual):
    """Return ``paths`` without those of virtual devices, unless they are shown."""
    visible = list(paths)
    if show_virtual:
        return visible
    for item in data:
        if item.is_virtual:
            # raises ValueError if the device's path is not among the paths
            visible.remove(item.inner.sysfs_path)
    return visible


def _sync_pages(pages, paths, make_title):
    """Drop pages whose path is gone and add pages for new paths.

    Returns the lists of added and removed paths.
    """
    removed = [path for path in pages if path not in paths]
    for path in removed:
        del pages[path]
    added = [path for path in paths if path not in pages]
    for path in added:
        pages[path] = make_title(path)
    return added, removed


def _usage_fraction(new, old):
    """CPU usage between two ``(idle_time, total_time)`` samples, from 0 to 1."""
    idle_delta = new[0] - old[0]
    total_delta = new[1] - old[1]
    if total_delta <= 0:
        return 0.0
    return min(max(1.0 - idle_delta / total_delta, 0.0), 1.0)


def _per_second(new, old, elapsed):
    if old is None or elapsed <= 0:
        return 0.0
    return max(new - old, 0) / elapsed


def _drive_title(drive_data, base):
    inner = drive_data.inner
    name = inner.display_name(drive_data.capacity, base)
    return f"{inner.model_name} ({name})" if inner.model_name else name


def _network_title(network_data):
    kind = network_data.inner.interface_type.description()
    return f"{network_data.display_name} ({kind})"


class _ConsoleView:
    """Prints refreshes and keeps what is needed to compute rates."""

    def __init__(self, args, out):
        self.args = args
        self.out = out
        self.base = Base.BINARY if args.binary else Base.DECIMAL
        self.drive_pages: dict[Path, str] = {}
        self.network_pages: dict[Path, str] = {}
        self.previous: RefreshData | None = None
        self.previous_time: float | None = None

    def _print(self, text=""):
        print(text, file=self.out)

    def refresh(self, data, now):
        elapsed = now - self.previous_time if self.previous_time is not None else 0.0
        previous = self.previous
        self._cpu(data.cpu_data, previous.cpu_data if previous else None)
        self._memory(data.mem_data)
        self._drives(data, previous, elapsed)
        self._networks(data, previous, elapsed)
        self._print()
        self.previous = data
        self.previous_time = now

    def _cpu(self, cpu, old):
        old_total = old.new_total_usage if old else (0, 0)
        usage = _usage_fraction(cpu.new_total_usage, old_total)
        line = f"CPU: {usage * 100:.1f}%"
        if cpu.frequencies:
            average = sum(cpu.frequencies) / len(cpu.frequencies)
            line += f", {convert_frequency(average)}"
        if cpu.temperature is not None:
            line += f", {cpu.temperature:.0f} °C"
        self._print(line)

    def _memory(self, mem):
        used = mem.total_mem - mem.available_mem
        swap_used = mem.total_swap - mem.free_swap
        self._print(
            f"Memory: {convert_storage(used, False, self.base)} / "
            f"{convert_storage(mem.total_mem, False, self.base)}, swap "
            f"{convert_storage(swap_used, False, self.base)} / "
            f"{convert_storage(mem.total_swap, False, self.base)}"
        )

    def _drives(self, data, previous, elapsed):
        shown = visible_paths(data.drive_paths, data.drive_data, self.args.show_virtual_drives)
        by_path = {d.inner.sysfs_path: d for d in data.drive_data}
        _sync_pages(self.drive_pages, shown, lambda p: _drive_title(by_path[p], self.base))
        old = {d.inner.sysfs_path: d for d in previous.drive_data} if previous else {}
        for path in shown:
            drive = by_path[path]
            before = old.get(path)
            rates = []
            for key in ("read_sectors", "write_sectors"):
                new_value = drive.disk_stats.get(key, 0)
                old_value = before.disk_stats.get(key) if before else None
                rates.append(_per_second(new_value, old_value, elapsed) * SECTOR_SIZE)
            self._print(
                f"{self.drive_pages[path]}: read "
                f"{convert_speed(rates[0], False, self.base, False)}, write "
                f"{convert_speed(rates[1], False, self.base, False)}"
            )

    def _networks(self, data, previous, elapsed):
        shown = visible_paths(
            data.network_paths, data.network_data, self.args.show_virtual_network_interfaces
        )
        by_path = {n.inner.sysfs_path: n for n in data.network_data}
        _sync_pages(self.network_pages, shown, lambda p: _network_title(by_path[p]))
        old = {n.inner.sysfs_path: n for n in previous.network_data} if previous else {}
        bits = self.args.network_bits
        for path in shown:
            interface = by_path[path]
            before = old.get(path)
            received = _per_second(
                interface.received_bytes, before.received_bytes if before else None, elapsed
            )
            sent = _per_second(
                interface.sent_bytes, before.sent_bytes if before else None, elapsed
            )
            self._print(
                f"{self.network_pages[path]}: down "
                f"{convert_speed(received, True, self.base, bits)}, up "
                f"{convert_speed(sent, True, self.base, bits)}"
            )


def _parser():
    parser = argparse.ArgumentParser(prog="resmon", description="Show system resource usage.")
    parser.add_argument("-n", "--count", type=int, default=1, help="number of refreshes")
    parser.add_argument(
        "-i", "--interval", type=float, default=1.0, help="seconds between refreshes"
    )
    parser.add_argument("--show-virtual-drives", action="store_true")
    parser.add_argument("--show-virtual-network-interfaces", action="store_true")
    parser.add_argument("--binary", action="store_true", help="use binary prefixes")
    parser.add_argument("--network-bits", action="store_true", help="show network in bits")
    return parser


def main(argv=None):
    """Print resource usage ``--count`` times, ``--interval`` seconds apart."""
    parser = _parser()
    args = parser.parse_args(argv)
    if args.count < 1:
        parser.error("--count must be at least 1")
    if args.interval <= GATHER_TIME:
        parser.error(f"--interval must be greater than {GATHER_TIME}")

    logical_cpus = os.cpu_count() or 1
    view = _ConsoleView(args, sys.stdout)
    try:
        for index in range(args.count):
            if index:
                time.sleep(args.interval)
            data = RefreshData.gather(logical_cpus)
            view.refresh(data, time.monotonic())
    except ResourceError as err:
        print(f"resmon: {err}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())