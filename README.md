# resmon

A resource monitor for Linux. It reads `/proc` and `/sys` to report CPU
usage, frequency and temperature, memory and swap, block devices and
network interfaces. It has no dependencies beyond the standard library.

## Installing

```
pip install .
```

## Running

```
resmon
resmon --count 10 --interval 2 --binary --network-bits
```

Each refresh prints the CPU usage (with the average frequency and the
temperature when they can be read), memory and swap in use, read and write
rates of each drive, and download and upload rates of each network
interface. Rates are computed between two refreshes, so the first refresh
shows them as zero and shows CPU usage since boot.

Options:

- `-n`, `--count`: number of refreshes (default 1, at least 1)
- `-i`, `--interval`: seconds between refreshes (default 1.0, must be greater than 0.2)
- `--show-virtual-drives`: also list loop, mapped, RAID, RAM-disk, ZFS-volume and zram devices, and drives with no capacity
- `--show-virtual-network-interfaces`: also list bridges, virtual Ethernet and WireGuard interfaces
- `--binary`: use binary prefixes (KiB, MiB, ...) instead of decimal ones
- `--network-bits`: show network rates in bits per second

The command exits with status 1 and a message if the system information
cannot be read, and with 130 when interrupted.

## Using it as a library

```python
from resmon.cpu import get_cpu_usage, cpu_info
from resmon.memory import MemoryData
from resmon.units import convert_storage
from resmon.settings import Base

idle, total = get_cpu_usage(None)
mem = MemoryData.read("/proc/meminfo")
print(convert_storage(mem.total_mem, True, Base.DECIMAL))
```

Errors while reading or parsing system files are raised as
`resmon.util.ResourceError`.

Modules:

- `resmon.cpu`: `/proc/stat` usage counters, `lscpu` information (`cpu_info`, `parse_lscpu`), per-core frequencies, temperature from hwmon and thermal-zone sensors, and `CpuData.gather` for a full snapshot
- `resmon.memory`: `/proc/meminfo` parsing (`MemoryData`, `get_total_memory` and friends) and memory modules from `dmidecode` (`get_memory_devices`, `pkexec_get_memory_devices`, `parse_dmidecode`)
- `resmon.drive`: block devices from `/sys/block` (`Drive`, `DriveType`, `DriveData`, `parse_disk_stats`)
- `resmon.network`: interfaces from `/sys/class/net` (`NetworkInterface`, `InterfaceType`, `NetworkData`)
- `resmon.units`: human-readable storage, speed, frequency, power and temperature strings
- `resmon.settings`: preferences stored as JSON (`Settings` with `get`, `set`, `connect` and `save`), and the `Base`, `TemperatureUnit` and `RefreshSpeed` enums
- `resmon.graph`: `Graph`, a fixed-width window of recent data points with a locked or automatic y-axis maximum
- `resmon.util`: `ResourceError`, a `pci.ids` lookup (`PciDatabase`), Flatpak detection and `nan_default`
- `resmon.monitor`: `RefreshData.gather`, `visible_paths` and the `resmon` command

## What it does not do

- It does not list running processes or group them by desktop application,
  and it cannot end, halt, kill or continue processes.
- It does not report GPU usage, video memory, clock speeds or power.
- It has no graphical window; the command prints plain text. The command
  takes its choices from its options and does not read a `Settings` file.

## Tests

```
pip install .[test]
pytest
```